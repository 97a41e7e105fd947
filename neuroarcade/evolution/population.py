"""
Population management for neuro-evolution.

Handles the lifecycle of a fixed-size population of agents:
- Initialization (random networks, optionally seeded from a saved one)
- Per-tick stepping through the game strategy
- Evolution (elitism, selection, crossover, mutation)
- Generation statistics and checkpoints

A generation cycles through three states:
    Active -> AllInactive -> Evolving -> Active
The population never decides to evolve on its own; the driver calls
evolve() once all_inactive() is true.
"""
import logging
import random
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

import torch

from ..exceptions import ConfigurationError, IncompatibleNetworksError
from ..networks import NeuralNetwork, CROSSOVER_STRATEGIES
from .agent import Agent
from .crossover import WeightCrossover
from .selection import EliteSelection, ZERO_FITNESS_POLICIES, get_selection_strategy

if TYPE_CHECKING:
    from ..games.base import BaseGame

logger = logging.getLogger(__name__)

SELECTION_STRATEGIES = ('roulette', 'truncation')


@dataclass
class EvolutionConfig:
    """Configuration for an evolution run."""

    # Population
    population_size: int = 50
    elite_count: int = 1

    # Selection
    selection_strategy: str = 'roulette'
    zero_fitness_policy: str = 'elite'
    elite_size: int = 10
    truncation_fraction: float = 0.5

    # Variation
    crossover_strategy: str = 'uniform'
    mutation_rate: float = 0.1
    mutation_strength: float = 0.3

    # Persistence
    checkpoint_dir: str = './evolution_checkpoints'

    def __post_init__(self):
        if not isinstance(self.population_size, int) or self.population_size < 1:
            raise ConfigurationError(
                f"population_size must be a positive integer, got {self.population_size!r}"
            )
        if not isinstance(self.elite_count, int) or not 1 <= self.elite_count <= self.population_size:
            raise ConfigurationError(
                f"elite_count must be between 1 and population_size, got {self.elite_count!r}"
            )
        if not isinstance(self.elite_size, int) or self.elite_size < 1:
            raise ConfigurationError(f"elite_size must be a positive integer, got {self.elite_size!r}")
        if self.selection_strategy not in SELECTION_STRATEGIES:
            raise ConfigurationError(
                f"Unknown selection strategy '{self.selection_strategy}'. "
                f"Available strategies: {', '.join(SELECTION_STRATEGIES)}"
            )
        if self.zero_fitness_policy not in ZERO_FITNESS_POLICIES:
            raise ConfigurationError(
                f"Unknown zero fitness policy '{self.zero_fitness_policy}'. "
                f"Available policies: {', '.join(ZERO_FITNESS_POLICIES)}"
            )
        if not 0 < self.truncation_fraction <= 1:
            raise ConfigurationError(
                f"truncation_fraction must be in (0, 1], got {self.truncation_fraction!r}"
            )
        if self.crossover_strategy not in CROSSOVER_STRATEGIES:
            raise ConfigurationError(
                f"Unknown crossover strategy '{self.crossover_strategy}'. "
                f"Available strategies: {', '.join(CROSSOVER_STRATEGIES)}"
            )
        if not 0 <= self.mutation_rate <= 1:
            raise ConfigurationError(f"mutation_rate must be in [0, 1], got {self.mutation_rate!r}")
        if self.mutation_strength < 0:
            raise ConfigurationError(
                f"mutation_strength must be >= 0, got {self.mutation_strength!r}"
            )


@dataclass
class GenerationStats:
    """Statistics for a finished generation."""
    generation: int = 0
    best_fitness: float = 0.0
    avg_fitness: float = 0.0
    min_fitness: float = 0.0
    fitness_std: float = 0.0
    best_score: Optional[float] = None
    num_elites: int = 0
    num_offspring: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


GenerationListener = Callable[['Population', GenerationStats], None]


class Population:
    """
    A fixed-size population of agents evolving against one game.

    Example:
        game = FlappyGame(physics=my_physics)
        pop = Population(game.evolution_config(), game)

        while True:
            pop.update(world)
            if pop.all_inactive():
                stats = pop.evolve()
                print(f"Gen {stats.generation}: best={stats.best_fitness:.1f}")
    """

    def __init__(
        self,
        config: EvolutionConfig,
        game: 'BaseGame',
        seed_network: Optional[NeuralNetwork] = None,
        rng: Optional[random.Random] = None,
        generator: Optional[torch.Generator] = None,
    ):
        """
        Create the first generation.

        Args:
            config: Evolution configuration.
            game: Game strategy that spawns, steps and scores agents.
            seed_network: Optional saved network; a clone of it takes slot 0.
            rng: Uniform source for selection. Defaults to `random`.
            generator: Optional torch generator for weights and mutation.

        Raises:
            IncompatibleNetworksError: If seed_network does not fit the game.
        """
        self.config = config
        self.game = game
        self.rng = rng or random
        self.generator = generator

        self.generation = 1
        self.best_fitness = 0.0
        self.best_agent: Optional[Agent] = None
        self.all_time_best: Optional[NeuralNetwork] = None
        self.all_time_best_fitness: Optional[float] = None
        self.stats_history: List[GenerationStats] = []
        self._listeners: List[GenerationListener] = []

        self._build_operators()

        self.agents: List[Agent] = [
            self._spawn(self._random_network()) for _ in range(config.population_size)
        ]
        if seed_network is not None:
            self._check_fits_game(seed_network)
            self.agents[0] = self._spawn(seed_network.clone())

    @classmethod
    def from_network(
        cls,
        config: EvolutionConfig,
        game: 'BaseGame',
        network: NeuralNetwork,
        rng: Optional[random.Random] = None,
        generator: Optional[torch.Generator] = None,
    ) -> 'Population':
        """
        Restart evolution around a saved network.

        Every agent receives a clone of the network and every agent but
        the first is mutated, so slot 0 replays the saved brain exactly.
        """
        population = cls(config, game, seed_network=network, rng=rng, generator=generator)
        for agent in population.agents[1:]:
            agent.network = network.clone()
            agent.network.mutate(generator=generator)
        return population

    def _build_operators(self) -> None:
        config = self.config
        if config.selection_strategy == 'roulette':
            self.selection = get_selection_strategy(
                'roulette',
                zero_fitness_policy=config.zero_fitness_policy,
                elite_size=config.elite_size,
                rng=self.rng,
            )
        else:
            self.selection = get_selection_strategy(
                'truncation',
                truncation_fraction=config.truncation_fraction,
                rng=self.rng,
            )
        self.elite_selection = EliteSelection(elite_count=config.elite_count)
        self.crossover = WeightCrossover(
            strategy=config.crossover_strategy,
            generator=self.generator,
        )

    def _random_network(self) -> NeuralNetwork:
        return self.game.create_network(
            mutation_rate=self.config.mutation_rate,
            mutation_strength=self.config.mutation_strength,
            generator=self.generator,
        )

    def _spawn(self, network: NeuralNetwork) -> Agent:
        agent = self.game.spawn(network)
        agent.generation = self.generation
        return agent

    def _check_fits_game(self, network: NeuralNetwork) -> None:
        expected = self.game.network_sizes
        if network.sizes != expected:
            raise IncompatibleNetworksError(
                f"Network sizes {network.sizes} do not match "
                f"{self.game.game_type} sizes {expected}"
            )

    # Per-tick update

    @property
    def size(self) -> int:
        return self.config.population_size

    @property
    def alive_count(self) -> int:
        return sum(1 for agent in self.agents if agent.active)

    def update(self, world: Any = None) -> int:
        """
        Step every active agent once.

        Args:
            world: Tick-specific observations handed to the game strategy.

        Returns:
            Number of agents still active after the step.
        """
        for agent in self.agents:
            if not agent.active:
                continue
            self.game.step(agent, world)
            if agent.fitness > self.best_fitness:
                self.best_fitness = agent.fitness
                self.best_agent = agent
        return self.alive_count

    def all_inactive(self) -> bool:
        """True once every agent has terminated."""
        return all(not agent.active for agent in self.agents)

    # Evolution

    def select_parent(self) -> Agent:
        """Pick one parent with the configured selection strategy."""
        return self.selection.select_one(self.agents)

    def evolve(self) -> GenerationStats:
        """
        Replace the population with the next generation.

        Returns:
            Statistics of the generation that just finished.
        """
        # Stable sort: agents with equal fitness keep their relative order
        self.agents = sorted(self.agents, key=lambda a: a.fitness, reverse=True)
        top = self.agents[0]

        if self.all_time_best is None or top.fitness > self.all_time_best_fitness:
            self.all_time_best = top.network.clone()
            self.all_time_best_fitness = top.fitness

        stats = self._compute_stats(self.agents)
        next_generation = self.generation + 1

        new_agents = []
        for elite in self.elite_selection.get_elite(self.agents):
            new_agents.append(self.game.spawn(elite.network.clone()))
            stats.num_elites += 1

        while len(new_agents) < self.size:
            parent_a = self.select_parent()
            parent_b = self.select_parent()
            child = self.crossover.crossover(parent_a.network, parent_b.network)
            child.mutate(generator=self.generator)
            new_agents.append(self.game.spawn(child))
            stats.num_offspring += 1

        for agent in new_agents:
            agent.generation = next_generation

        self.agents = new_agents
        self.generation = next_generation
        self.best_fitness = 0.0
        self.best_agent = None
        self.stats_history.append(stats)

        logger.info(
            "%s generation %d finished: best=%.3f avg=%.3f",
            self.game.game_type, stats.generation, stats.best_fitness, stats.avg_fitness,
        )
        for listener in self._listeners:
            listener(self, stats)

        return stats

    def add_listener(self, listener: GenerationListener) -> None:
        """Register a callback invoked with (population, stats) after each evolve()."""
        self._listeners.append(listener)

    def _compute_stats(self, agents: List[Agent]) -> GenerationStats:
        fitnesses = [agent.fitness for agent in agents]
        scores = [s for s in (self.game.score(agent) for agent in agents) if s is not None]
        return GenerationStats(
            generation=self.generation,
            best_fitness=max(fitnesses),
            avg_fitness=sum(fitnesses) / len(fitnesses),
            min_fitness=min(fitnesses),
            fitness_std=self._std(fitnesses),
            best_score=max(scores) if scores else None,
        )

    def _std(self, values: List[float]) -> float:
        """Calculate standard deviation."""
        if len(values) < 2:
            return 0.0
        mean = sum(values) / len(values)
        variance = sum((x - mean) ** 2 for x in values) / len(values)
        return variance ** 0.5

    # Queries

    def get_best(self) -> Agent:
        """Get the best agent in the current population."""
        return max(self.agents, key=lambda a: a.fitness)

    def get_top_n(self, n: int) -> List[Agent]:
        """Get the top n agents by fitness."""
        return sorted(self.agents, key=lambda a: a.fitness, reverse=True)[:n]

    @property
    def avg_fitness(self) -> float:
        """Average fitness of the current agents."""
        if not self.agents:
            return 0.0
        return sum(a.fitness for a in self.agents) / len(self.agents)

    # Checkpoints

    def save_checkpoint(self, path: Optional[str] = None) -> Path:
        """
        Save population checkpoint.

        Args:
            path: Optional directory; defaults to config.checkpoint_dir.

        Returns:
            Path to saved checkpoint.
        """
        checkpoint_dir = Path(path or self.config.checkpoint_dir)
        checkpoint_dir.mkdir(parents=True, exist_ok=True)

        filepath = checkpoint_dir / f'{self.game.game_type}_gen{self.generation:05d}.pt'

        checkpoint = {
            'game_type': self.game.game_type,
            'generation': self.generation,
            'config': asdict(self.config),
            'agents': [
                {
                    'id': agent.id,
                    'fitness': agent.fitness,
                    'network': agent.network.serialize(),
                }
                for agent in self.agents
            ],
            'all_time_best': (
                self.all_time_best.serialize() if self.all_time_best is not None else None
            ),
            'all_time_best_fitness': self.all_time_best_fitness,
            'stats_history': [stats.to_dict() for stats in self.stats_history],
        }

        torch.save(checkpoint, filepath)
        logger.info("Saved checkpoint %s", filepath)
        return filepath

    def load_checkpoint(self, path: str) -> None:
        """
        Restore population state from a checkpoint.

        Agents are re-spawned through the game strategy, so their domain
        state starts fresh while networks and fitness are restored. Every
        record is validated before anything is replaced, so a failed load
        leaves the population untouched.

        Raises:
            ConfigurationError: If the checkpoint belongs to another game.
            NetworkFormatError: If a stored network record is invalid.
            IncompatibleNetworksError: If a stored network does not fit the game.
        """
        checkpoint = torch.load(path, weights_only=True)

        if checkpoint['game_type'] != self.game.game_type:
            raise ConfigurationError(
                f"Checkpoint is for '{checkpoint['game_type']}', "
                f"not '{self.game.game_type}'"
            )

        config = EvolutionConfig(**checkpoint['config'])
        generation = checkpoint['generation']

        restored = []
        for data in checkpoint['agents']:
            network = NeuralNetwork.deserialize(data['network'])
            self._check_fits_game(network)
            restored.append((data, network))

        best = checkpoint.get('all_time_best')
        all_time_best = NeuralNetwork.deserialize(best) if best is not None else None
        stats_history = [
            GenerationStats(**stats) for stats in checkpoint.get('stats_history', [])
        ]

        agents = []
        for data, network in restored:
            agent = self.game.spawn(network)
            agent.id = data['id']
            agent.fitness = data['fitness']
            agent.generation = generation
            agents.append(agent)

        self.config = config
        self._build_operators()
        self.generation = generation
        self.agents = agents
        self.all_time_best = all_time_best
        self.all_time_best_fitness = checkpoint.get('all_time_best_fitness')
        self.stats_history = stats_history
        self.best_fitness = 0.0
        self.best_agent = None
        logger.info("Loaded checkpoint %s at generation %d", path, self.generation)
