"""
Selection strategies for evolutionary algorithms.

Selection determines which agents get to reproduce:
- Roulette: probability proportional to (non-negative) fitness
- Truncation: only the top fraction reproduces, uniformly
- Elite: the best agents are copied unchanged into the next generation

All strategies work on lists of agents exposing a `fitness` attribute.
"""
import logging
import random
from typing import Any, List, Optional

from ..exceptions import ConfigurationError
from .agent import Agent

logger = logging.getLogger(__name__)

ZERO_FITNESS_POLICIES = ('elite', 'population')


class RouletteSelection:
    """
    Fitness-proportional ("roulette wheel") selection.

    Each agent is weighted by max(fitness, 0). When every weight is
    zero nobody has earned a share of the wheel, so a parent is drawn
    uniformly from a fallback pool instead:
    - 'elite': the first `elite_size` agents in the current ordering
               (the population is sorted best-first before breeding)
    - 'population': every agent

    Example:
        selection = RouletteSelection(zero_fitness_policy='elite', elite_size=10)
        parent = selection.select_one(agents)
    """

    def __init__(
        self,
        zero_fitness_policy: str = 'elite',
        elite_size: int = 10,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize roulette selection.

        Args:
            zero_fitness_policy: 'elite' or 'population'.
            elite_size: Size of the fallback pool for the 'elite' policy.
            rng: Uniform source. Defaults to the `random` module.
        """
        if zero_fitness_policy not in ZERO_FITNESS_POLICIES:
            raise ConfigurationError(
                f"Unknown zero fitness policy '{zero_fitness_policy}'. "
                f"Available policies: {', '.join(ZERO_FITNESS_POLICIES)}"
            )
        if elite_size < 1:
            raise ConfigurationError(f"elite_size must be >= 1, got {elite_size}")

        self.zero_fitness_policy = zero_fitness_policy
        self.elite_size = elite_size
        self.rng = rng or random

    def fallback_pool(self, population: List[Agent]) -> List[Agent]:
        """Agents eligible when the total fitness is zero."""
        if self.zero_fitness_policy == 'elite':
            return population[:min(self.elite_size, len(population))]
        return list(population)

    def select_one(self, population: List[Agent]) -> Agent:
        """
        Draw a single agent.

        Raises:
            ValueError: If the population is empty.
        """
        if not population:
            raise ValueError("Cannot select from an empty population")

        weights = [max(agent.fitness, 0.0) for agent in population]
        total = sum(weights)

        if total == 0:
            logger.debug(
                "Total fitness is zero, selecting from %s fallback pool",
                self.zero_fitness_policy,
            )
            return self.rng.choice(self.fallback_pool(population))

        threshold = self.rng.random() * total
        cumulative = 0.0
        last_positive = population[0]
        for agent, weight in zip(population, weights):
            if weight <= 0:
                continue
            cumulative += weight
            last_positive = agent
            if cumulative >= threshold:
                return agent

        # Floating point drift can leave the threshold a hair above the sum
        return last_positive

    def select(
        self,
        population: List[Agent],
        num_to_select: int,
    ) -> List[Agent]:
        """
        Draw several agents independently (with replacement).

        Args:
            population: Agents to choose from.
            num_to_select: Number of draws.

        Returns:
            List of selected agents.
        """
        if not population:
            return []
        return [self.select_one(population) for _ in range(num_to_select)]


class TruncationSelection:
    """
    Truncation selection strategy.

    Only the top fraction of the population is allowed to reproduce;
    parents are drawn uniformly from it.
    """

    def __init__(
        self,
        truncation_fraction: float = 0.5,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize truncation selection.

        Args:
            truncation_fraction: Top fraction that survives (0-1].
            rng: Uniform source. Defaults to the `random` module.
        """
        if not 0 < truncation_fraction <= 1:
            raise ConfigurationError(
                f"truncation_fraction must be in (0, 1], got {truncation_fraction}"
            )
        self.truncation_fraction = truncation_fraction
        self.rng = rng or random

    def survivors(self, population: List[Agent]) -> List[Agent]:
        """The top fraction, best first."""
        sorted_pop = sorted(population, key=lambda a: a.fitness, reverse=True)
        cutoff = max(1, int(len(sorted_pop) * self.truncation_fraction))
        return sorted_pop[:cutoff]

    def select_one(self, population: List[Agent]) -> Agent:
        if not population:
            raise ValueError("Cannot select from an empty population")
        return self.rng.choice(self.survivors(population))

    def select(
        self,
        population: List[Agent],
        num_to_select: int,
    ) -> List[Agent]:
        """Draw num_to_select agents from the survivors."""
        if not population:
            return []
        top = self.survivors(population)
        return [self.rng.choice(top) for _ in range(num_to_select)]


class EliteSelection:
    """
    Elitism: preserve the best agents unchanged.

    Combined with another strategy; elites bypass crossover and
    mutation and go directly into the next generation.
    """

    def __init__(self, elite_count: int = 1):
        """
        Args:
            elite_count: Number of agents to carry over.
        """
        self.elite_count = elite_count

    def get_elite(self, population: List[Agent]) -> List[Agent]:
        """Best `elite_count` agents; ties keep their current order."""
        if not population:
            return []
        sorted_pop = sorted(population, key=lambda a: a.fitness, reverse=True)
        return sorted_pop[:self.elite_count]


def get_selection_strategy(
    strategy_name: str,
    **kwargs: Any,
) -> Any:
    """
    Factory function for parent selection strategies.

    Args:
        strategy_name: One of 'roulette', 'truncation'.
        **kwargs: Arguments for the strategy.

    Returns:
        Selection strategy instance.
    """
    strategies = {
        'roulette': RouletteSelection,
        'truncation': TruncationSelection,
    }

    if strategy_name not in strategies:
        raise ValueError(
            f"Unknown strategy: {strategy_name}. "
            f"Available strategies: {', '.join(strategies)}"
        )

    return strategies[strategy_name](**kwargs)
