"""
Tetris placement strategy.

The network never drives individual key presses. For each new piece
the caller enumerates every reachable (rotation, column) placement,
simulates the drop and reports the resulting board features. The
network scores each candidate and the best one is chosen:

    100 * sum(outputs) + 1000 * lines - 5 * height - 100 * holes - 10 * bumpiness

A candidate is a mapping with keys rotation, x, piece, lines, height,
holes and bumpiness. `board_features()` computes the last three from a
grid of 0/1 cells (top row first).
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from ..evolution.agent import Agent
from ..networks import tetris_architecture
from .base import BaseGame, GameConfig

PIECES = ('I', 'O', 'T', 'S', 'Z', 'J', 'L')


@dataclass
class TetrisConfig(GameConfig):
    """Board dimensions for Tetris."""
    cols: int = 10
    rows: int = 20
    block_size: int = 30

    def validate(self) -> None:
        super().validate()
        self._require_positive('cols', 'rows', 'block_size')


# Board features

def column_heights(grid) -> np.ndarray:
    """Height of the topmost filled cell of each column (0 if empty)."""
    cells = np.asarray(grid, dtype=bool)
    rows = cells.shape[0]
    filled = cells.any(axis=0)
    first = cells.argmax(axis=0)
    return np.where(filled, rows - first, 0)


def count_holes(grid) -> int:
    """Empty cells with at least one filled cell above them."""
    cells = np.asarray(grid, dtype=bool)
    covered = np.logical_or.accumulate(cells, axis=0)
    return int(np.count_nonzero(covered & ~cells))


def board_features(grid) -> Dict[str, int]:
    """
    Aggregate height, holes and bumpiness of a board.

    Example:
        >>> board_features([[0, 0], [1, 0], [1, 1]])
        {'height': 2, 'holes': 0, 'bumpiness': 1}
    """
    heights = column_heights(grid)
    return {
        'height': int(heights.max()) if heights.size else 0,
        'holes': count_holes(grid),
        'bumpiness': int(np.abs(np.diff(heights)).sum()),
    }


class TetrisGame(BaseGame):
    """Placement search scored by an evolved network."""

    game_type = 'tetris'
    display_name = 'Tetris'
    config_class = TetrisConfig

    def architecture(self) -> Dict[str, Any]:
        return tetris_architecture()

    def initial_state(self) -> Dict[str, Any]:
        return {
            'score': 0,
            'lines': 0,
            'height': 0,
            'holes': 0,
            'bumpiness': 0,
        }

    def build_inputs(self, agent: Agent, world: Any) -> Optional[np.ndarray]:
        """Input vector for one placement candidate."""
        candidate = world
        cols = self.config.cols
        rows = self.config.rows
        lines = agent.state['lines'] + candidate['lines']
        return np.array([
            candidate['height'] / rows,
            candidate['holes'] / (cols * rows),
            candidate['bumpiness'] / (cols * 10),
            candidate['x'] / cols,
            0.0,
            PIECES.index(candidate['piece']) / len(PIECES),
            0.0,
            lines / 100,
            math.floor(lines / 10) / 20,
            (cols / 2 - candidate['x']) / cols,
        ], dtype=np.float64)

    def interpret_outputs(self, outputs: List[float]) -> Dict[str, Any]:
        return {'network_score': sum(outputs)}

    def evaluate(self, agent: Agent, candidate: Mapping[str, Any]) -> float:
        """Combined network and heuristic score of one candidate."""
        network_score = self.interpret_outputs(
            agent.think(self.build_inputs(agent, candidate))
        )['network_score']
        return (
            network_score * 100
            + candidate['lines'] * 1000
            - candidate['height'] * 5
            - candidate['holes'] * 100
            - candidate['bumpiness'] * 10
        )

    def decide(self, agent: Agent, world: Any) -> Optional[Dict[str, Any]]:
        """
        Pick the best placement among world['candidates'].

        Returns None when there are no candidates; the caller then hard
        drops the piece where it is. Ties keep the first candidate.
        """
        candidates: Sequence[Mapping[str, Any]] = (world or {}).get('candidates', ())
        best = None
        best_score = -math.inf
        for candidate in candidates:
            score = self.evaluate(agent, candidate)
            if score > best_score:
                best_score = score
                best = candidate
        if best is None:
            return None
        return {'rotation': best['rotation'], 'x': best['x'], 'score': best_score}

    def compute_fitness(self, agent: Agent) -> float:
        state = agent.state
        low_board_bonus = 50 if state['height'] < self.config.rows / 2 else 0
        return (
            state['score']
            + state['lines'] * 100
            + low_board_bonus
            - state['holes'] * 10
            - state['bumpiness'] * 2
        )

    def update_board(self, agent: Agent, grid, lines_cleared: int = 0, points: int = 0) -> None:
        """Record the board after a piece lands."""
        agent.state.update(board_features(grid))
        agent.state['lines'] += lines_cleared
        agent.state['score'] += points
