"""
Neuroevolution module for evolving game-playing agents.

Networks keep a fixed topology; only weights evolve. This module
provides:
- Agent: one network plus fitness / activity bookkeeping
- Selection strategies (roulette, truncation, elitism)
- Crossover operator (uniform gene pick or averaging)
- Population management for complete evolution runs

Example usage:
    from neuroarcade.evolution import Population
    from neuroarcade.games import FlappyGame

    game = FlappyGame(physics=flappy_physics)
    pop = Population(game.evolution_config(), game)

    while running:
        pop.update(world)
        if pop.all_inactive():
            stats = pop.evolve()
            print(f"Gen {stats.generation}: best={stats.best_fitness:.3f}")

    best = pop.all_time_best
"""
from .agent import Agent
from .selection import (
    RouletteSelection,
    TruncationSelection,
    EliteSelection,
    ZERO_FITNESS_POLICIES,
    get_selection_strategy,
)
from .crossover import WeightCrossover
from .population import (
    Population,
    EvolutionConfig,
    GenerationStats,
    SELECTION_STRATEGIES,
)

__all__ = [
    # Agents
    'Agent',

    # Selection
    'RouletteSelection',
    'TruncationSelection',
    'EliteSelection',
    'ZERO_FITNESS_POLICIES',
    'get_selection_strategy',

    # Crossover
    'WeightCrossover',

    # Population management
    'Population',
    'EvolutionConfig',
    'GenerationStats',
    'SELECTION_STRATEGIES',
]
