"""
Visualization and reporting for evolution runs.

All plots use matplotlib's Agg backend and are written to files.

Example usage:
    from neuroarcade.visualization import plot_fitness_over_generations

    plot_fitness_over_generations(population.stats_history, save_path='fitness.png')
"""
from .evolution import (
    fitness_series,
    plot_fitness_over_generations,
    plot_weight_distributions,
    format_evolution_summary,
    format_network_summary,
)

__all__ = [
    'fitness_series',
    'plot_fitness_over_generations',
    'plot_weight_distributions',
    'format_evolution_summary',
    'format_network_summary',
]
