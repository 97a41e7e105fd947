"""
Preset network shapes for the bundled games.

Each preset is a plain dictionary so it can be stored next to a
saved network or edited in a settings file.
"""
from typing import Any, Dict, Optional

import torch

from .feedforward import NeuralNetwork


def flappy_architecture() -> Dict[str, Any]:
    """
    Flappy Bird brain.

    Architecture:
        Input (4) -> Hidden (8, sigmoid) -> Output (2, sigmoid)

    Inputs are the bird height and the horizontal / vertical offsets
    to the next pipe gap. Output 0 above 0.5 means "flap".
    """
    return {
        'name': 'Flappy',
        'input_size': 4,
        'hidden_size': 8,
        'output_size': 2,
    }


def racing_architecture(sensor_count: int = 5) -> Dict[str, Any]:
    """
    Top-down racing brain.

    Architecture:
        Input (sensors + 3) -> Hidden (12, sigmoid) -> Output (3, sigmoid)

    Outputs are throttle, steering (re-centred to [-1, 1]) and brake.
    """
    return {
        'name': 'Racing',
        'input_size': sensor_count + 3,
        'hidden_size': 12,
        'output_size': 3,
    }


def tetris_architecture() -> Dict[str, Any]:
    """
    Tetris placement evaluator.

    Architecture:
        Input (10) -> Hidden (16, sigmoid) -> Output (7, sigmoid)

    The outputs are summed into a single placement score.
    """
    return {
        'name': 'Tetris',
        'input_size': 10,
        'hidden_size': 16,
        'output_size': 7,
    }


PRESETS = {
    'flappy': flappy_architecture,
    'racing': racing_architecture,
    'tetris': tetris_architecture,
}


def build_network(
    architecture: Dict[str, Any],
    mutation_rate: float = 0.1,
    mutation_strength: float = 0.3,
    generator: Optional[torch.Generator] = None,
) -> NeuralNetwork:
    """
    Create a randomly initialized network from an architecture dict.

    Raises:
        ValueError: If the architecture lacks a size key.
    """
    for key in ('input_size', 'hidden_size', 'output_size'):
        if key not in architecture:
            raise ValueError(f"Architecture must have '{key}' key")

    return NeuralNetwork(
        architecture['input_size'],
        architecture['hidden_size'],
        architecture['output_size'],
        mutation_rate=mutation_rate,
        mutation_strength=mutation_strength,
        generator=generator,
    )


def get_architecture(name: str, **kwargs: Any) -> Dict[str, Any]:
    """
    Look up a preset by game name.

    Raises:
        ValueError: If no preset exists for the name.
    """
    if name not in PRESETS:
        raise ValueError(
            f"Unknown architecture '{name}'. Available: {', '.join(PRESETS)}"
        )
    return PRESETS[name](**kwargs)
