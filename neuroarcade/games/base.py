"""
Abstract base class for game strategies.

A game strategy is everything the evolution engine needs to know about
a particular game, and nothing more:
- which network shape its agents use
- how an agent's observation becomes an input vector
- how the output vector becomes an action
- how fitness is scored and when an agent is finished
- what a freshly spawned agent looks like

Physics (moving birds, steering cars, dropping pieces) stays outside.
The caller injects it as a callable `physics(agent, action, world)`
that is invoked after each decision.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import numpy as np

from ..evolution.agent import Agent
from ..evolution.population import EvolutionConfig
from ..exceptions import ConfigurationError
from ..networks import NeuralNetwork, build_network

PhysicsFn = Callable[[Agent, Optional[Dict[str, Any]], Any], None]


@dataclass
class GameConfig:
    """Tunables shared by every game's evolution setup."""
    population_size: int = 50
    mutation_rate: float = 0.1
    mutation_strength: float = 0.3
    elite_size: int = 10

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check every field.

        Raises:
            ConfigurationError: On the first invalid value.
        """
        if not isinstance(self.population_size, int) or self.population_size < 1:
            raise ConfigurationError(
                f"population_size must be a positive integer, got {self.population_size!r}"
            )
        if not 0 <= self.mutation_rate <= 1:
            raise ConfigurationError(f"mutation_rate must be in [0, 1], got {self.mutation_rate!r}")
        if self.mutation_strength < 0:
            raise ConfigurationError(
                f"mutation_strength must be >= 0, got {self.mutation_strength!r}"
            )
        if not isinstance(self.elite_size, int) or self.elite_size < 1:
            raise ConfigurationError(f"elite_size must be a positive integer, got {self.elite_size!r}")

    def _require_positive(self, *names: str) -> None:
        for name in names:
            value = getattr(self, name)
            if not value > 0:
                raise ConfigurationError(f"{name} must be > 0, got {value!r}")

    def evolution_config(self, **overrides: Any) -> EvolutionConfig:
        """Build the EvolutionConfig matching this game's tunables."""
        params = {
            'population_size': self.population_size,
            'mutation_rate': self.mutation_rate,
            'mutation_strength': self.mutation_strength,
            'elite_size': self.elite_size,
        }
        params.update(overrides)
        return EvolutionConfig(**params)


class BaseGame(ABC):
    """
    Abstract base class for the games agents learn to play.

    Attributes:
        game_type: Unique identifier (e.g., 'flappy').
        display_name: Human-readable name.
        config_class: Dataclass holding the game's tunables.

    Example:
        class MyGame(BaseGame):
            game_type = 'mygame'
            config_class = MyConfig

            def architecture(self):
                return {'input_size': 3, 'hidden_size': 4, 'output_size': 1}
            ...
    """

    game_type: str = ''
    display_name: str = ''
    config_class: Type[GameConfig] = GameConfig

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        physics: Optional[PhysicsFn] = None,
    ):
        """
        Args:
            config: Game tunables; defaults to `config_class()`.
            physics: Optional callable applying an action to an agent.

        Raises:
            ConfigurationError: If config is not a `config_class` instance.
        """
        if config is None:
            config = self.config_class()
        if not isinstance(config, self.config_class):
            raise ConfigurationError(
                f"{type(self).__name__} expects a {self.config_class.__name__}, "
                f"got {type(config).__name__}"
            )
        self.config = config
        self.physics = physics

    # Network shape

    @abstractmethod
    def architecture(self) -> Dict[str, Any]:
        """Return the preset dict with input/hidden/output sizes."""

    @property
    def network_sizes(self) -> Tuple[int, int, int]:
        arch = self.architecture()
        return (arch['input_size'], arch['hidden_size'], arch['output_size'])

    def create_network(
        self,
        mutation_rate: Optional[float] = None,
        mutation_strength: Optional[float] = None,
        generator=None,
    ) -> NeuralNetwork:
        """A fresh random brain for this game."""
        return build_network(
            self.architecture(),
            mutation_rate=self.config.mutation_rate if mutation_rate is None else mutation_rate,
            mutation_strength=(
                self.config.mutation_strength if mutation_strength is None else mutation_strength
            ),
            generator=generator,
        )

    def evolution_config(self, **overrides: Any) -> EvolutionConfig:
        return self.config.evolution_config(**overrides)

    # Agent lifecycle

    def spawn(self, network: NeuralNetwork) -> Agent:
        """Wrap a network in an agent at the game's spawn state."""
        return Agent(network=network, state=self.initial_state())

    @abstractmethod
    def initial_state(self) -> Dict[str, Any]:
        """Domain state of a freshly spawned agent."""

    @abstractmethod
    def build_inputs(self, agent: Agent, world: Any) -> Optional[np.ndarray]:
        """
        Turn an observation into the network's input vector.

        Returns:
            float64 array of length input_size, or None when the agent
            has nothing to decide this tick.
        """

    @abstractmethod
    def interpret_outputs(self, outputs: List[float]) -> Dict[str, Any]:
        """Turn the network's output vector into an action dict."""

    @abstractmethod
    def compute_fitness(self, agent: Agent) -> float:
        """Score an agent from its domain state."""

    def is_terminated(self, agent: Agent) -> bool:
        """Game-level termination rule besides what physics decides."""
        return False

    def score(self, agent: Agent) -> Optional[float]:
        """In-game score shown to players, if the game has one."""
        return agent.state.get('score')

    def decide(self, agent: Agent, world: Any) -> Optional[Dict[str, Any]]:
        """Pick an action for this tick (None if there is nothing to do)."""
        inputs = self.build_inputs(agent, world)
        if inputs is None:
            return None
        return self.interpret_outputs(agent.think(inputs))

    def step(self, agent: Agent, world: Any = None) -> None:
        """
        Advance one agent by one tick.

        Decide, hand the action to the injected physics, then rescore
        and apply the termination rule.
        """
        action = self.decide(agent, world)
        agent.last_action = action
        if self.physics is not None:
            self.physics(agent, action, world)
        agent.fitness = self.compute_fitness(agent)
        if self.is_terminated(agent):
            agent.deactivate()
