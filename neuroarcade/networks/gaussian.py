"""
Gaussian sampling via the Box-Muller transform.

Two flavours share the same transform:
- random_gaussian: a single float from a `random.Random`-like source
- gaussian_tensor: a float64 tensor of draws from a torch generator

Both re-draw uniforms that land exactly on 0 so log(0) never happens.
"""
import math
import random
from typing import Optional, Sequence, Union

import torch


def random_gaussian(
    mean: float = 0.0,
    std: float = 1.0,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Draw one normal deviate.

    Args:
        mean: Mean of the distribution.
        std: Standard deviation of the distribution.
        rng: Uniform source with a `random()` method. Defaults to the
             module-level `random` generator.

    Returns:
        mean + std * sqrt(-2 ln u) * cos(2 pi v)
    """
    source = rng or random
    u = 0.0
    v = 0.0
    while u == 0.0:
        u = source.random()
    while v == 0.0:
        v = source.random()
    return mean + std * math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def _open_uniform(
    shape: Sequence[int],
    generator: Optional[torch.Generator],
) -> torch.Tensor:
    """Uniform float64 draws from the open interval (0, 1)."""
    u = torch.rand(shape, generator=generator, dtype=torch.float64)
    zeros = u == 0
    while zeros.any():
        u[zeros] = torch.rand(
            int(zeros.sum().item()), generator=generator, dtype=torch.float64
        )
        zeros = u == 0
    return u


def gaussian_tensor(
    shape: Union[int, Sequence[int]],
    mean: float = 0.0,
    std: float = 1.0,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """
    Draw a tensor of normal deviates with the Box-Muller transform.

    Args:
        shape: Output shape.
        mean: Mean of the distribution.
        std: Standard deviation of the distribution.
        generator: Optional torch generator for reproducible draws.

    Returns:
        float64 tensor of the requested shape.
    """
    if isinstance(shape, int):
        shape = (shape,)
    shape = tuple(shape)

    u = _open_uniform(shape, generator)
    v = _open_uniform(shape, generator)
    z = torch.sqrt(-2.0 * torch.log(u)) * torch.cos(2.0 * math.pi * v)
    return mean + std * z
