"""
Fixed-topology feed-forward network used as an agent's brain.

Topology is always input -> hidden -> output with sigmoid activations
on both layers. Parameters are float64 tensors so a network survives a
JSON round trip bit-for-bit.

The network supports everything the genetic algorithm needs:
- Xavier-scaled Gaussian initialization
- Forward inference (single vector or batch)
- Cloning (independent deep copy)
- In-place per-weight Gaussian mutation
- Gene-wise crossover ('uniform' pick or 'average' blend)
- Serialization to / validation of a plain record
"""
import json
import math
import numbers
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from ..exceptions import (
    ConfigurationError,
    IncompatibleNetworksError,
    NetworkFormatError,
    ShapeMismatchError,
)
from .gaussian import gaussian_tensor

DTYPE = torch.float64

CROSSOVER_STRATEGIES = ('uniform', 'average')

# Serialized record keys, in the order they are written.
RECORD_KEYS = (
    'inputSize',
    'hiddenSize',
    'outputSize',
    'weightsIH',
    'weightsHO',
    'biasH',
    'biasO',
    'mutationRate',
    'mutationStrength',
)

InputVector = Union[Sequence[float], np.ndarray, torch.Tensor]


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_size(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and value > 0


class NeuralNetwork(nn.Module):
    """
    Two-layer sigmoid network with evolvable weights.

    Attributes:
        input_size: Length of the input vector.
        hidden_size: Number of hidden neurons.
        output_size: Length of the output vector.
        mutation_rate: Probability that mutate() perturbs a given scalar.
        mutation_strength: Standard deviation of a mutation perturbation.
        weights_ih: (hidden_size, input_size) input -> hidden weights.
        bias_h: (hidden_size,) hidden biases.
        weights_ho: (output_size, hidden_size) hidden -> output weights.
        bias_o: (output_size,) output biases.

    Example:
        net = NeuralNetwork(4, 8, 2)
        outputs = net.predict([0.5, 0.1, -0.2, 0.3])
        child = NeuralNetwork.crossover(net, other)
        child.mutate()
    """

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        output_size: int,
        mutation_rate: float = 0.1,
        mutation_strength: float = 0.3,
        generator: Optional[torch.Generator] = None,
        randomize: bool = True,
    ):
        """
        Build a network and (by default) draw random weights.

        Args:
            input_size: Number of inputs.
            hidden_size: Number of hidden neurons.
            output_size: Number of outputs.
            mutation_rate: Per-scalar mutation probability (0-1).
            mutation_strength: Std of the Gaussian mutation noise.
            generator: Optional torch generator for reproducible weights.
            randomize: If False, parameters are left at zero (used when
                       the caller is about to load a state dict).

        Raises:
            ConfigurationError: If a size or hyperparameter is invalid.
        """
        super().__init__()

        for name, value in (
            ('input_size', input_size),
            ('hidden_size', hidden_size),
            ('output_size', output_size),
        ):
            if not _is_size(value):
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        self._check_hyperparameters(mutation_rate, mutation_strength, ConfigurationError)

        self.input_size = int(input_size)
        self.hidden_size = int(hidden_size)
        self.output_size = int(output_size)
        self.mutation_rate = float(mutation_rate)
        self.mutation_strength = float(mutation_strength)

        self.weights_ih = nn.Parameter(
            torch.zeros(self.hidden_size, self.input_size, dtype=DTYPE),
            requires_grad=False,
        )
        self.bias_h = nn.Parameter(
            torch.zeros(self.hidden_size, dtype=DTYPE), requires_grad=False
        )
        self.weights_ho = nn.Parameter(
            torch.zeros(self.output_size, self.hidden_size, dtype=DTYPE),
            requires_grad=False,
        )
        self.bias_o = nn.Parameter(
            torch.zeros(self.output_size, dtype=DTYPE), requires_grad=False
        )

        if randomize:
            self.randomize(generator)

    @staticmethod
    def _check_hyperparameters(rate: Any, strength: Any, error_class: type) -> None:
        if not _is_real(rate) or not 0.0 <= rate <= 1.0:
            raise error_class(f"mutation_rate must be a number in [0, 1], got {rate!r}")
        if not _is_real(strength) or not math.isfinite(strength) or strength < 0:
            raise error_class(f"mutation_strength must be a number >= 0, got {strength!r}")

    def extra_repr(self) -> str:
        return (
            f"input_size={self.input_size}, hidden_size={self.hidden_size}, "
            f"output_size={self.output_size}, mutation_rate={self.mutation_rate}, "
            f"mutation_strength={self.mutation_strength}"
        )

    @property
    def sizes(self) -> Tuple[int, int, int]:
        """(input_size, hidden_size, output_size)."""
        return (self.input_size, self.hidden_size, self.output_size)

    def randomize(self, generator: Optional[torch.Generator] = None) -> None:
        """
        Redraw every parameter from N(0, sqrt(2 / (rows + cols))).

        The scale is computed per container from its own shape; bias
        vectors count as a single column.
        """
        for param in self.parameters():
            rows = param.shape[0]
            cols = param.shape[1] if param.dim() == 2 else 1
            limit = math.sqrt(2.0 / (rows + cols))
            param.copy_(gaussian_tensor(param.shape, 0.0, limit, generator))

    # Inference

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Forward pass for a (input_size,) or (batch, input_size) tensor."""
        hidden = torch.sigmoid(F.linear(x, self.weights_ih, self.bias_h))
        return torch.sigmoid(F.linear(hidden, self.weights_ho, self.bias_o))

    def predict(self, inputs: InputVector) -> List[float]:
        """
        Run one input vector through the network.

        Args:
            inputs: Sequence of input_size real numbers.

        Returns:
            List of output_size values in (0, 1).

        Raises:
            ShapeMismatchError: If inputs is not a vector of input_size values.
        """
        if isinstance(inputs, torch.Tensor):
            x = inputs.detach().to(DTYPE)
        else:
            x = torch.as_tensor(np.asarray(inputs, dtype=np.float64))

        if x.dim() != 1:
            raise ShapeMismatchError(self.input_size, tuple(x.shape))
        if x.shape[0] != self.input_size:
            raise ShapeMismatchError(self.input_size, x.shape[0])

        with torch.no_grad():
            return self.forward(x).tolist()

    # Genetic operators

    def clone(self) -> 'NeuralNetwork':
        """Return an independent copy with identical parameters."""
        copy = NeuralNetwork(
            self.input_size,
            self.hidden_size,
            self.output_size,
            self.mutation_rate,
            self.mutation_strength,
            randomize=False,
        )
        copy.load_state_dict(self.state_dict())
        return copy

    def mutate(
        self,
        rate: Optional[float] = None,
        strength: Optional[float] = None,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        """
        Perturb parameters in place.

        Each scalar is independently replaced by value + N(0, strength)
        with probability rate; untouched scalars keep their exact value.

        Args:
            rate: Override for mutation_rate.
            strength: Override for mutation_strength.
            generator: Optional torch generator.
        """
        rate = self.mutation_rate if rate is None else rate
        strength = self.mutation_strength if strength is None else strength

        for param in self.parameters():
            mask = torch.rand(param.shape, generator=generator, dtype=DTYPE) < rate
            noise = gaussian_tensor(param.shape, 0.0, strength, generator)
            param.copy_(torch.where(mask, param + noise, param))

    @staticmethod
    def crossover(
        parent1: 'NeuralNetwork',
        parent2: 'NeuralNetwork',
        strategy: str = 'uniform',
        generator: Optional[torch.Generator] = None,
    ) -> 'NeuralNetwork':
        """
        Combine two parents gene by gene.

        Strategies:
        - uniform: each scalar taken from parent1 or parent2 with p=0.5
        - average: each scalar is the midpoint of both parents

        The child inherits parent1's mutation hyperparameters.

        Raises:
            IncompatibleNetworksError: If the parents' sizes differ.
            ValueError: If the strategy is unknown.
        """
        if parent1.sizes != parent2.sizes:
            raise IncompatibleNetworksError(
                f"Parents must have identical layer sizes, got "
                f"{parent1.sizes} and {parent2.sizes}"
            )
        if strategy not in CROSSOVER_STRATEGIES:
            raise ValueError(
                f"Unknown crossover strategy '{strategy}'. "
                f"Available strategies: {', '.join(CROSSOVER_STRATEGIES)}"
            )

        child = NeuralNetwork(
            parent1.input_size,
            parent1.hidden_size,
            parent1.output_size,
            parent1.mutation_rate,
            parent1.mutation_strength,
            randomize=False,
        )

        state_a = parent1.state_dict()
        state_b = parent2.state_dict()
        child_state = {}
        for name, value_a in state_a.items():
            value_b = state_b[name]
            if strategy == 'uniform':
                mask = torch.rand(value_a.shape, generator=generator, dtype=DTYPE) < 0.5
                child_state[name] = torch.where(mask, value_a, value_b)
            else:
                child_state[name] = (value_a + value_b) / 2

        child.load_state_dict(child_state)
        return child

    # Serialization

    def serialize(self) -> Dict[str, Any]:
        """
        Export parameters as a JSON-compatible record.

        Bias vectors are written as single-column matrices.
        """
        return {
            'inputSize': self.input_size,
            'hiddenSize': self.hidden_size,
            'outputSize': self.output_size,
            'weightsIH': self.weights_ih.tolist(),
            'weightsHO': self.weights_ho.tolist(),
            'biasH': [[value] for value in self.bias_h.tolist()],
            'biasO': [[value] for value in self.bias_o.tolist()],
            'mutationRate': self.mutation_rate,
            'mutationStrength': self.mutation_strength,
        }

    @staticmethod
    def deserialize(record: Mapping[str, Any]) -> 'NeuralNetwork':
        """
        Rebuild a network from a record produced by serialize().

        The whole record is validated before any network is built.

        Raises:
            NetworkFormatError: If the record is missing fields or its
                                arrays disagree with the declared sizes.
        """
        validate_record(record)

        network = NeuralNetwork(
            record['inputSize'],
            record['hiddenSize'],
            record['outputSize'],
            record['mutationRate'],
            record['mutationStrength'],
            randomize=False,
        )
        network.load_state_dict({
            'weights_ih': torch.tensor(record['weightsIH'], dtype=DTYPE),
            'bias_h': torch.tensor([row[0] for row in record['biasH']], dtype=DTYPE),
            'weights_ho': torch.tensor(record['weightsHO'], dtype=DTYPE),
            'bias_o': torch.tensor([row[0] for row in record['biasO']], dtype=DTYPE),
        })
        return network

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.serialize(), indent=indent)

    @staticmethod
    def from_json(text: str) -> 'NeuralNetwork':
        """Deserialize from a JSON string."""
        try:
            record = json.loads(text)
        except json.JSONDecodeError as e:
            raise NetworkFormatError(f"Invalid JSON: {e}") from e
        return NeuralNetwork.deserialize(record)

    # Introspection

    def parameter_count(self) -> int:
        """Total number of weights and biases."""
        return sum(p.numel() for p in self.parameters())

    def summary(self) -> Dict[str, Any]:
        """Sizes, hyperparameters and weight statistics."""
        flat = torch.cat([p.flatten() for p in self.parameters()])
        return {
            'input_size': self.input_size,
            'hidden_size': self.hidden_size,
            'output_size': self.output_size,
            'parameters': self.parameter_count(),
            'mutation_rate': self.mutation_rate,
            'mutation_strength': self.mutation_strength,
            'weight_mean': flat.mean().item(),
            'weight_std': flat.std().item() if flat.numel() > 1 else 0.0,
            'weight_min': flat.min().item(),
            'weight_max': flat.max().item(),
        }


def _validate_matrix(name: str, value: Any, rows: int, cols: int) -> None:
    if not isinstance(value, (list, tuple)) or len(value) != rows:
        raise NetworkFormatError(f"'{name}' must be a list of {rows} rows")
    for i, row in enumerate(value):
        if not isinstance(row, (list, tuple)) or len(row) != cols:
            raise NetworkFormatError(f"'{name}' row {i} must have {cols} columns")
        for j, item in enumerate(row):
            if not _is_real(item) or not math.isfinite(item):
                raise NetworkFormatError(
                    f"'{name}'[{i}][{j}] must be a finite number, got {item!r}"
                )


def validate_record(record: Any) -> None:
    """
    Check that a serialized network record is structurally sound.

    Raises:
        NetworkFormatError: Describing the first problem found.
    """
    if not isinstance(record, Mapping):
        raise NetworkFormatError("Network record must be a dictionary")

    missing = [key for key in RECORD_KEYS if key not in record]
    if missing:
        raise NetworkFormatError(f"Network record is missing keys: {', '.join(missing)}")

    for key in ('inputSize', 'hiddenSize', 'outputSize'):
        if not _is_size(record[key]):
            raise NetworkFormatError(f"'{key}' must be a positive integer, got {record[key]!r}")

    NeuralNetwork._check_hyperparameters(
        record['mutationRate'], record['mutationStrength'], NetworkFormatError
    )

    inputs = record['inputSize']
    hidden = record['hiddenSize']
    outputs = record['outputSize']
    _validate_matrix('weightsIH', record['weightsIH'], hidden, inputs)
    _validate_matrix('weightsHO', record['weightsHO'], outputs, hidden)
    _validate_matrix('biasH', record['biasH'], hidden, 1)
    _validate_matrix('biasO', record['biasO'], outputs, 1)
