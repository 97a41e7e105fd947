"""
Top-down racing strategy.

Cars read a fan of distance sensors (1.0 = nothing within range),
their own speed and heading, and the distance to the next checkpoint.
The track itself (walls, ray casting, collisions) belongs to the
caller, which provides it through the world mapping:

    {
        'sense': lambda agent: [0.8, 1.0, 0.4, 1.0, 0.9],
        'checkpoints': [(600.0, 120.0), (1000.0, 400.0), ...],
    }

Fitness rewards laps, then checkpoints, then raw distance driven:
    1000 * laps + 100 * checkpoints_passed + 0.1 * distance
A car that has not reached a checkpoint for `stall_limit` ticks is
retired.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..evolution.agent import Agent
from ..exceptions import ShapeMismatchError
from ..networks import racing_architecture
from .base import BaseGame, GameConfig

CHECKPOINT_DISTANCE_SCALE = 500.0
LAP_BONUS = 1000.0
CHECKPOINT_BONUS = 100.0
DISTANCE_WEIGHT = 0.1


@dataclass
class RacingConfig(GameConfig):
    """Track, car and sensor constants for racing."""
    width: float = 1200.0
    height: float = 800.0
    car_width: float = 30.0
    car_height: float = 50.0
    max_speed: float = 8.0
    acceleration: float = 0.2
    brake_force: float = 0.4
    friction: float = 0.05
    turn_speed: float = 0.05
    sensor_distance: float = 200.0
    sensor_count: int = 5
    wall_thickness: float = 20.0
    checkpoint_size: float = 30.0
    stall_limit: int = 1000

    start_x: float = 100.0
    start_y: float = 400.0
    start_angle: float = 0.0

    def validate(self) -> None:
        super().validate()
        self._require_positive(
            'max_speed', 'sensor_distance', 'sensor_count', 'checkpoint_size', 'stall_limit',
        )


class RacingGame(BaseGame):
    """Cars lapping a caller-defined circuit."""

    game_type = 'racing'
    display_name = 'Racing'
    config_class = RacingConfig

    def architecture(self) -> Dict[str, Any]:
        return racing_architecture(sensor_count=self.config.sensor_count)

    def initial_state(self) -> Dict[str, Any]:
        cfg = self.config
        return {
            'x': cfg.start_x,
            'y': cfg.start_y,
            'angle': cfg.start_angle,
            'speed': 0.0,
            'distance': 0.0,
            'laps': 0,
            'checkpoints_passed': 0,
            'current_checkpoint': 0,
            'time_alive': 0,
            'last_checkpoint_time': 0,
        }

    def next_checkpoint(
        self,
        agent: Agent,
        checkpoints: Sequence[Tuple[float, float]],
    ) -> Optional[Tuple[float, float]]:
        if not checkpoints:
            return None
        return checkpoints[agent.state['current_checkpoint'] % len(checkpoints)]

    def build_inputs(self, agent: Agent, world: Any) -> Optional[np.ndarray]:
        world = world or {}
        cfg = self.config
        state = agent.state

        sense = world.get('sense')
        sensors = list(sense(agent)) if sense is not None else [1.0] * cfg.sensor_count
        if len(sensors) != cfg.sensor_count:
            raise ShapeMismatchError(cfg.sensor_count, len(sensors))

        checkpoint = self.next_checkpoint(agent, world.get('checkpoints', ()))
        if checkpoint is None:
            to_checkpoint = 1.0
        else:
            to_checkpoint = math.hypot(
                checkpoint[0] - state['x'], checkpoint[1] - state['y'],
            ) / CHECKPOINT_DISTANCE_SCALE

        return np.array(
            sensors + [
                state['speed'] / cfg.max_speed,
                state['angle'] / (2 * math.pi),
                to_checkpoint,
            ],
            dtype=np.float64,
        )

    def interpret_outputs(self, outputs: List[float]) -> Dict[str, Any]:
        throttle, steer, brake = outputs
        return {
            'throttle': throttle,
            'steering': (steer - 0.5) * 2,
            'brake': brake,
            'accelerate': throttle > 0.5 and brake < 0.5,
            'braking': brake > 0.5,
        }

    def compute_fitness(self, agent: Agent) -> float:
        state = agent.state
        return (
            LAP_BONUS * state['laps']
            + CHECKPOINT_BONUS * state['checkpoints_passed']
            + DISTANCE_WEIGHT * state['distance']
        )

    def is_terminated(self, agent: Agent) -> bool:
        state = agent.state
        return state['time_alive'] - state['last_checkpoint_time'] > self.config.stall_limit

    def score(self, agent: Agent) -> Optional[float]:
        return agent.state['laps']

    def step(self, agent: Agent, world: Any = None) -> None:
        agent.state['time_alive'] += 1
        super().step(agent, world)

    # Physics helpers

    def drive(self, agent: Agent, action: Optional[Dict[str, Any]]) -> Tuple[float, float]:
        """
        Integrate speed and heading for one tick.

        Returns:
            The proposed (x, y). The caller checks it against the walls
            and commits it with `move_to` if the car survives.
        """
        cfg = self.config
        state = agent.state
        if action:
            if action['accelerate']:
                state['speed'] = min(state['speed'] + cfg.acceleration * action['throttle'], cfg.max_speed)
            if action['braking']:
                state['speed'] = max(state['speed'] - cfg.brake_force * action['brake'], 0.0)

        state['speed'] *= 1 - cfg.friction
        if action and state['speed'] > 0.1:
            state['angle'] += action['steering'] * cfg.turn_speed * (state['speed'] / cfg.max_speed)

        return (
            state['x'] + math.cos(state['angle']) * state['speed'],
            state['y'] + math.sin(state['angle']) * state['speed'],
        )

    def move_to(self, agent: Agent, x: float, y: float) -> None:
        """Commit a position and add the speed to the distance driven."""
        agent.state['x'] = x
        agent.state['y'] = y
        agent.state['distance'] += agent.state['speed']

    def record_checkpoint(self, agent: Agent, completed_lap: bool = False) -> None:
        """Credit a checkpoint (and a lap if it closed the circuit)."""
        state = agent.state
        state['checkpoints_passed'] += 1
        state['current_checkpoint'] += 1
        state['last_checkpoint_time'] = state['time_alive']
        if completed_lap:
            state['laps'] += 1
            state['current_checkpoint'] = 0
