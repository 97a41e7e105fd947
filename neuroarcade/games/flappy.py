"""
Flappy Bird strategy.

Birds see the closest pipe that is still ahead of them and flap when
their first output neuron fires above 0.5. A pipe is described by its
left edge `x`, its `width` and the top of its gap `y`; the gap is
`pipe_gap` pixels tall.

Example world passed to Population.update():
    {'pipes': [{'x': 420.0, 'y': 180.0, 'width': 60.0}]}
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from ..evolution.agent import Agent
from ..networks import flappy_architecture
from .base import BaseGame, GameConfig

JUMP_THRESHOLD = 0.5


@dataclass
class FlappyConfig(GameConfig):
    """Canvas and physics constants for Flappy Bird."""
    population_size: int = 100
    elite_size: int = 20

    width: float = 800.0
    height: float = 600.0
    gravity: float = 0.6
    jump_strength: float = -12.0
    max_fall_speed: float = 15.0
    pipe_speed: float = 3.0
    pipe_gap: float = 200.0
    pipe_spacing: float = 300.0
    bird_x: float = 100.0
    bird_size: float = 30.0

    def validate(self) -> None:
        super().validate()
        self._require_positive('width', 'height', 'pipe_gap', 'pipe_spacing', 'bird_size')


def closest_pipe(pipes: Sequence[Mapping[str, float]], x: float) -> Optional[Mapping[str, float]]:
    """
    The pipe with the smallest left edge whose right edge is still past x.

    Returns None when every pipe is behind the bird.
    """
    closest = None
    for pipe in pipes:
        if pipe['x'] + pipe['width'] > x and (closest is None or pipe['x'] < closest['x']):
            closest = pipe
    return closest


class FlappyGame(BaseGame):
    """Birds flapping through an endless stream of pipes."""

    game_type = 'flappy'
    display_name = 'Flappy Bird'
    config_class = FlappyConfig

    def architecture(self) -> Dict[str, Any]:
        return flappy_architecture()

    def initial_state(self) -> Dict[str, Any]:
        return {
            'x': self.config.bird_x,
            'y': self.config.height / 2,
            'velocity': 0.0,
            'score': 0,
        }

    def build_inputs(self, agent: Agent, world: Any) -> Optional[np.ndarray]:
        pipes = (world or {}).get('pipes', ())
        state = agent.state
        pipe = closest_pipe(pipes, state['x'])
        if pipe is None:
            return None

        cfg = self.config
        return np.array([
            state['y'] / cfg.height,
            (pipe['x'] - state['x']) / cfg.width,
            (state['y'] - pipe['y']) / cfg.height,
            (pipe['y'] + cfg.pipe_gap - state['y']) / cfg.height,
        ], dtype=np.float64)

    def interpret_outputs(self, outputs: List[float]) -> Dict[str, Any]:
        return {'jump': outputs[0] > JUMP_THRESHOLD}

    def compute_fitness(self, agent: Agent) -> float:
        return agent.state['score'] + agent.state['x'] / 100

    # Physics helpers

    def move_bird(self, agent: Agent, action: Optional[Dict[str, Any]]) -> None:
        """Apply a flap (if any), then gravity, then the fall-speed cap."""
        cfg = self.config
        state = agent.state
        if action and action.get('jump'):
            state['velocity'] = cfg.jump_strength
        state['velocity'] += cfg.gravity
        state['y'] += state['velocity']
        if state['velocity'] > cfg.max_fall_speed:
            state['velocity'] = cfg.max_fall_speed

    def out_of_bounds(self, agent: Agent, ground_y: Optional[float] = None) -> bool:
        """True when the bird touched the ground or the ceiling."""
        ground_y = self.config.height if ground_y is None else ground_y
        y = agent.state['y']
        return y + self.config.bird_size >= ground_y or y <= 0
