"""
Pytest fixtures for engine tests.

Provides fixtures for:
- Seeded random sources
- Networks and agents
- A minimal game with scripted physics
- Stores
"""
import random
from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np
import pytest
import torch

from neuroarcade.games import BaseGame, GameConfig
from neuroarcade.storage import MemoryStore

from .factories import AgentFactory, NeuralNetworkFactory


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def generator() -> torch.Generator:
    return torch.Generator().manual_seed(1234)


@pytest.fixture
def network(generator):
    """A 4-8-2 network with seeded weights."""
    return NeuralNetworkFactory(generator=generator)


@pytest.fixture
def agents() -> List:
    """Four agents with fitness [10, 0, 0, 0]."""
    return [
        AgentFactory(fitness=10.0),
        AgentFactory(fitness=0.0),
        AgentFactory(fitness=0.0),
        AgentFactory(fitness=0.0),
    ]


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@dataclass
class CounterConfig(GameConfig):
    """Config for the counting test game."""
    lifetime: int = 3


class CounterGame(BaseGame):
    """
    Test game: agents live `lifetime` ticks and score one point per tick
    when their first output exceeds 0.5, so fitness depends on weights.
    """

    game_type = 'counter'
    display_name = 'Counter'
    config_class = CounterConfig

    def architecture(self) -> Dict[str, Any]:
        return {'name': 'Counter', 'input_size': 2, 'hidden_size': 3, 'output_size': 1}

    def initial_state(self) -> Dict[str, Any]:
        return {'ticks': 0, 'score': 0}

    def build_inputs(self, agent, world):
        return np.array([1.0, agent.state['ticks'] / 10], dtype=np.float64)

    def interpret_outputs(self, outputs):
        return {'press': outputs[0] > 0.5}

    def compute_fitness(self, agent) -> float:
        return float(agent.state['score']) + agent.state['ticks'] * 0.01

    def is_terminated(self, agent) -> bool:
        return agent.state['ticks'] >= self.config.lifetime


def counter_physics(agent, action, world):
    agent.state['ticks'] += 1
    if action and action['press']:
        agent.state['score'] += 1


@pytest.fixture
def counter_game() -> CounterGame:
    return CounterGame(config=CounterConfig(population_size=6, elite_size=2), physics=counter_physics)
