"""
Headless driver for evolution runs.

Real-time front ends call Population.update() once per frame and
evolve() when every agent is done. HeadlessRunner does the same as
fast as possible, for training without a display and for tests.
"""
import logging
from typing import Any, Callable, List, Optional

from .evolution.population import GenerationStats, Population

logger = logging.getLogger(__name__)

WorldFn = Callable[[int], Any]
ProgressCallback = Callable[[int, GenerationStats], None]


class HeadlessRunner:
    """
    Tick a population to completion, generation after generation.

    Example:
        runner = HeadlessRunner(population, world_fn=track.world, max_ticks=5000)
        history = runner.run(50, target_fitness=3000)
    """

    def __init__(
        self,
        population: Population,
        world_fn: Optional[WorldFn] = None,
        max_ticks: Optional[int] = None,
    ):
        """
        Args:
            population: Population to drive.
            world_fn: Called with the tick number (from 0 each generation);
                its return value is passed to update(). None means no world.
            max_ticks: Retire every remaining agent after this many ticks.
        """
        if max_ticks is not None and max_ticks < 1:
            raise ValueError(f"max_ticks must be positive, got {max_ticks}")
        self.population = population
        self.world_fn = world_fn
        self.max_ticks = max_ticks

    def run_generation(self) -> GenerationStats:
        """Tick until every agent is inactive (or time runs out), then evolve."""
        population = self.population
        tick = 0
        while not population.all_inactive():
            if self.max_ticks is not None and tick >= self.max_ticks:
                logger.debug(
                    "Tick limit %d reached with %d agents alive",
                    self.max_ticks, population.alive_count,
                )
                for agent in population.agents:
                    agent.deactivate()
                break
            world = self.world_fn(tick) if self.world_fn is not None else None
            population.update(world)
            tick += 1
        return population.evolve()

    def run(
        self,
        generations: int,
        progress_callback: Optional[ProgressCallback] = None,
        target_fitness: Optional[float] = None,
    ) -> List[GenerationStats]:
        """
        Run several generations.

        Args:
            generations: Maximum number of generations.
            progress_callback: Called with (index, stats) after each one.
            target_fitness: Stop early once a generation's best reaches it.

        Returns:
            Stats of every generation run.
        """
        history = []
        for i in range(generations):
            stats = self.run_generation()
            history.append(stats)

            if progress_callback:
                progress_callback(i, stats)

            if target_fitness is not None and stats.best_fitness >= target_fitness:
                logger.info(
                    "Target fitness %.3f reached at generation %d",
                    target_fitness, stats.generation,
                )
                break

        return history
