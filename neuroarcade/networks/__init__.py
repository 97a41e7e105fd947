"""
Neural network infrastructure for evolving agents.

This module provides:
- NeuralNetwork: fixed-topology sigmoid network with genetic operators
- Box-Muller Gaussian sampling (scalar and tensor)
- Preset architectures for the bundled games
- Record validation for serialized networks
"""
from .gaussian import random_gaussian, gaussian_tensor
from .feedforward import (
    NeuralNetwork,
    CROSSOVER_STRATEGIES,
    RECORD_KEYS,
    validate_record,
)
from .architectures import (
    flappy_architecture,
    racing_architecture,
    tetris_architecture,
    build_network,
    get_architecture,
)

__all__ = [
    # Sampling
    'random_gaussian',
    'gaussian_tensor',

    # Network
    'NeuralNetwork',
    'CROSSOVER_STRATEGIES',
    'RECORD_KEYS',
    'validate_record',

    # Architectures
    'flappy_architecture',
    'racing_architecture',
    'tetris_architecture',
    'build_network',
    'get_architecture',
]
