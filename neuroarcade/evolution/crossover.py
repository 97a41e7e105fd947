"""
Crossover operator for network evolution.

Networks in one population always share a topology, so crossover
works scalar by scalar. Two policies exist and they produce very
different dynamics:
- uniform: each weight is inherited from one parent or the other
- average: each weight is the midpoint of the two parents

The bundled games all use 'uniform'.
"""
from typing import Optional

import torch

from ..exceptions import ConfigurationError
from ..networks import NeuralNetwork, CROSSOVER_STRATEGIES


class WeightCrossover:
    """
    Weight-level crossover for networks with identical layer sizes.

    Example:
        crossover = WeightCrossover(strategy='uniform')
        child = crossover.crossover(parent_a, parent_b)
    """

    def __init__(
        self,
        strategy: str = 'uniform',
        generator: Optional[torch.Generator] = None,
    ):
        """
        Initialize the crossover operator.

        Args:
            strategy: 'uniform' or 'average'.
            generator: Optional torch generator for reproducible masks.
        """
        if strategy not in CROSSOVER_STRATEGIES:
            raise ConfigurationError(
                f"Unknown crossover strategy '{strategy}'. "
                f"Available strategies: {', '.join(CROSSOVER_STRATEGIES)}"
            )
        self.strategy = strategy
        self.generator = generator

    @staticmethod
    def is_compatible(net_a: NeuralNetwork, net_b: NeuralNetwork) -> bool:
        """Check if two networks can be crossed."""
        return net_a.sizes == net_b.sizes

    def crossover(
        self,
        parent_a: NeuralNetwork,
        parent_b: NeuralNetwork,
    ) -> NeuralNetwork:
        """
        Create offspring from two parent networks.

        Raises:
            IncompatibleNetworksError: If parents have different sizes.
        """
        return NeuralNetwork.crossover(
            parent_a,
            parent_b,
            strategy=self.strategy,
            generator=self.generator,
        )
