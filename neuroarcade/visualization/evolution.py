"""
Evolution visualization utilities.

Generate visualizations for evolution runs:
- Fitness over generations
- Weight distributions of a network
- Plain-text summaries for logs and the command line
"""
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from ..networks import NeuralNetwork

StatsLike = Union[Dict[str, Any], Any]


def _as_dicts(stats_history: Sequence[StatsLike]) -> List[Dict[str, Any]]:
    """Accept GenerationStats objects or their dict form."""
    return [asdict(s) if is_dataclass(s) else dict(s) for s in stats_history]


def _finish(fig, save_path: Optional[str]) -> Optional[str]:
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return save_path

    plt.close(fig)
    return None


def fitness_series(stats_history: Sequence[StatsLike]) -> Dict[str, np.ndarray]:
    """
    Column arrays for plotting a run.

    Generations without a recorded best score get NaN in 'best_score', so
    matplotlib leaves a gap instead of drawing a zero.
    """
    history = _as_dicts(stats_history)
    scores = [s.get('best_score') for s in history]
    return {
        'generation': np.array([s.get('generation', i + 1) for i, s in enumerate(history)]),
        'best': np.array([s.get('best_fitness', 0.0) for s in history], dtype=np.float64),
        'avg': np.array([s.get('avg_fitness', 0.0) for s in history], dtype=np.float64),
        'min': np.array([s.get('min_fitness', 0.0) for s in history], dtype=np.float64),
        'std': np.array([s.get('fitness_std', 0.0) for s in history], dtype=np.float64),
        'best_score': np.array(
            [np.nan if score is None else score for score in scores], dtype=np.float64,
        ),
    }


def plot_fitness_over_generations(
    stats_history: Sequence[StatsLike],
    save_path: Optional[str] = None,
    show_spread: bool = True,
    game_type: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 7),
) -> Optional[str]:
    """
    Plot fitness progression over generations.

    The top panel shows best and average fitness, the minimum as a dashed
    line and, optionally, the average plus or minus one standard deviation.
    When the game reports scores, a lower panel shows the best score of
    each generation.

    Args:
        stats_history: GenerationStats objects or dicts.
        save_path: Path to save figure.
        show_spread: Shade avg ± std (floored at the generation minimum).
        game_type: Game name for the title.
        figsize: Figure size.

    Returns:
        Path to saved figure, or None if nothing was saved.
    """
    series = fitness_series(stats_history)
    generations = series['generation']
    if len(generations) == 0:
        return None

    has_scores = not np.all(np.isnan(series['best_score']))
    if has_scores:
        fig, (ax, score_ax) = plt.subplots(
            2, 1, figsize=figsize, sharex=True, gridspec_kw={'height_ratios': [3, 1]},
        )
    else:
        fig, ax = plt.subplots(figsize=figsize)

    ax.plot(generations, series['best'], 'g-', linewidth=2, label='Best')
    ax.plot(generations, series['avg'], 'b-', linewidth=2, label='Average')
    ax.plot(generations, series['min'], 'k--', linewidth=1, alpha=0.6, label='Min')

    if show_spread:
        lower = np.maximum(series['avg'] - series['std'], series['min'])
        upper = np.minimum(series['avg'] + series['std'], series['best'])
        ax.fill_between(generations, lower, upper, alpha=0.2, color='blue', label='Avg ± std')

    ax.set_ylabel('Fitness')
    ax.set_title(f'{game_type.title()} fitness' if game_type else 'Fitness Over Generations')
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)

    if has_scores:
        score_ax.bar(generations, np.nan_to_num(series['best_score']), color='orange', alpha=0.8)
        score_ax.set_ylabel('Best score')
        score_ax.grid(True, alpha=0.3)
        score_ax.set_xlabel('Generation')
    else:
        ax.set_xlabel('Generation')

    return _finish(fig, save_path)


def plot_weight_distributions(
    network: NeuralNetwork,
    save_path: Optional[str] = None,
    bins: int = 30,
    figsize: Tuple[int, int] = (12, 8),
) -> Optional[str]:
    """
    Histogram of each parameter tensor of a network.

    Useful to spot saturation after many generations of mutation.
    """
    params = list(network.named_parameters())
    fig, axes = plt.subplots(2, 2, figsize=figsize)

    for ax, (name, param) in zip(np.ravel(axes), params):
        values = param.detach().cpu().numpy().ravel()
        ax.hist(values, bins=bins, color='steelblue', edgecolor='black', alpha=0.7)
        ax.axvline(values.mean(), color='red', linestyle='--', linewidth=1)
        ax.set_title(f'{name} {tuple(param.shape)}')
        ax.grid(True, alpha=0.3)

    fig.suptitle('Weight Distributions')
    return _finish(fig, save_path)


def format_evolution_summary(
    stats_history: Sequence[StatsLike],
    best_fitness: Optional[float] = None,
    game_type: Optional[str] = None,
) -> str:
    """
    Generate a text summary of an evolution run.

    Args:
        stats_history: GenerationStats objects or dicts.
        best_fitness: All-time best fitness, if known.
        game_type: Game name for the header.

    Returns:
        Formatted text summary.
    """
    history = _as_dicts(stats_history)
    title = f"EVOLUTION SUMMARY ({game_type})" if game_type else "EVOLUTION SUMMARY"
    lines = [
        "=" * 50,
        title,
        "=" * 50,
        "",
        f"Total generations: {len(history)}",
    ]

    if history:
        first = history[0]
        last = history[-1]

        lines.extend([
            "",
            "Fitness progression:",
            f"  Initial best: {first.get('best_fitness', 0):.3f}",
            f"  Final best: {last.get('best_fitness', 0):.3f}",
            f"  Final average: {last.get('avg_fitness', 0):.3f}",
            f"  Improvement: {last.get('best_fitness', 0) - first.get('best_fitness', 0):.3f}",
        ])

        scores = [s['best_score'] for s in history if s.get('best_score') is not None]
        if scores:
            lines.append(f"  Best score: {max(scores)}")

    if best_fitness is not None:
        lines.extend(["", f"All-time best fitness: {best_fitness:.3f}"])

    lines.extend(["", "=" * 50])

    return "\n".join(lines)


def format_network_summary(network: NeuralNetwork) -> str:
    """One block of text describing a network's shape and weights."""
    info = network.summary()
    return "\n".join([
        f"Network {info['input_size']} -> {info['hidden_size']} -> {info['output_size']}",
        f"  Parameters: {info['parameters']}",
        f"  Mutation: rate={info['mutation_rate']} strength={info['mutation_strength']}",
        f"  Weights: mean={info['weight_mean']:.4f} std={info['weight_std']:.4f} "
        f"min={info['weight_min']:.4f} max={info['weight_max']:.4f}",
    ])
