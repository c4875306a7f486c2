"""
network.py
~~~~~~~~~~

Data model of the three-layer network: neurons, layers and the network
that owns them.

A neuron holds its current activation and the weights of its outgoing
connections, one per neuron of the next layer. Weights therefore point
forward by index only, and the output layer's neurons carry no weights.
"""

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from icrnet import config
from icrnet.backprop import backpropagate, propagate
from icrnet.config import Topology
from icrnet.exceptions import ShapeMismatchError

logger = logging.getLogger(__name__)


class Neuron:
    """A single node: an activation value and a fixed-length weight vector."""

    __slots__ = ('activation', '_weights')

    def __init__(self, num_weights: int, activation: float = 0.0):
        self.activation = float(activation)
        self._weights = np.zeros(num_weights)

    @property
    def weights(self) -> np.ndarray:
        """Outgoing weights, indexed by neuron position in the next layer."""
        return self._weights

    @weights.setter
    def weights(self, values: Sequence[float]) -> None:
        values = np.array(values, dtype=float)
        if values.shape != self._weights.shape:
            raise ShapeMismatchError(
                f"Neuron has {len(self._weights)} weights, "
                f"cannot assign {values.shape[0] if values.ndim else 0}"
            )
        self._weights = values

    def generate_random_weights(
        self,
        rng: np.random.Generator,
        weight_range: float = config.WEIGHT_RANGE
    ) -> None:
        """Draw every weight uniformly from [-weight_range, weight_range)."""
        self._weights = rng.uniform(
            -weight_range, weight_range, size=len(self._weights)
        )

    def __repr__(self) -> str:
        return (
            f"Neuron(activation={self.activation:.4f}, "
            f"weights={len(self._weights)})"
        )


class Layer:
    """
    An ordered, fixed-length collection of neurons.

    Every neuron of a layer has the same number of outgoing weights,
    namely the size of the layer it feeds.
    """

    def __init__(self, size: int, num_weights: int = 0):
        self._neurons: Tuple[Neuron, ...] = tuple(
            Neuron(num_weights) for _ in range(size)
        )
        self.num_weights = num_weights

    def __len__(self) -> int:
        return len(self._neurons)

    def __getitem__(self, index: int) -> Neuron:
        return self._neurons[index]

    def __iter__(self) -> Iterator[Neuron]:
        return iter(self._neurons)

    def __repr__(self) -> str:
        return f"Layer(size={len(self)}, num_weights={self.num_weights})"

    @property
    def activations(self) -> np.ndarray:
        """Copy of the current activations, in neuron order."""
        return np.array([neuron.activation for neuron in self._neurons])

    def set_activations(self, values: Sequence[float]) -> None:
        """
        Load one value per neuron.

        Raises:
            ShapeMismatchError: If the number of values differs from the
                layer size
        """
        if len(values) != len(self._neurons):
            raise ShapeMismatchError(
                f"Layer has {len(self._neurons)} neurons, "
                f"got {len(values)} values"
            )
        for neuron, value in zip(self._neurons, values):
            neuron.activation = float(value)

    def weight_matrix(self) -> np.ndarray:
        """Snapshot of all weights, shape ``(len(self), num_weights)``."""
        return np.array(
            [neuron.weights for neuron in self._neurons]
        ).reshape(len(self), self.num_weights)

    def set_weight_matrix(self, matrix) -> None:
        """
        Replace every neuron's weights from a ``(len(self), num_weights)``
        matrix.

        Raises:
            ShapeMismatchError: If the matrix shape does not fit the layer
        """
        matrix = np.asarray(matrix, dtype=float)
        if matrix.shape != (len(self), self.num_weights):
            raise ShapeMismatchError(
                f"Expected weight matrix of shape "
                f"{(len(self), self.num_weights)}, got {matrix.shape}"
            )
        for neuron, row in zip(self._neurons, matrix):
            neuron.weights = row


class Network:
    """
    Input, hidden and output layers, fully connected in that order.

    The network exclusively owns its three layers. Training mutates the
    weights of the input and hidden layers in place.
    """

    def __init__(
        self,
        topology: Topology = Topology(),
        seed: Optional[int] = None,
        weight_range: float = config.WEIGHT_RANGE,
        learning_rate: float = config.LEARNING_RATE,
        reapply_sigmoid: bool = True
    ):
        """
        Build the layers and draw random initial weights.

        Args:
            topology: Layer sizes
            seed: Seed for the weight generator, for reproducible runs
            weight_range: Half-width of the uniform weight distribution
            learning_rate: Step size used by :meth:`backpropagate`
            reapply_sigmoid: Derivative variant for the hidden error term,
                see :func:`icrnet.activation.hidden_derivative`
        """
        self.topology = Topology(*topology).validate()
        self.learning_rate = learning_rate
        self.reapply_sigmoid = reapply_sigmoid

        self.input_layer = Layer(self.topology.input_size,
                                 self.topology.hidden_size)
        self.hidden_layer = Layer(self.topology.hidden_size,
                                  self.topology.output_size)
        self.output_layer = Layer(self.topology.output_size)

        rng = np.random.default_rng(seed)
        for neuron in self.hidden_layer:
            neuron.generate_random_weights(rng, weight_range)
        for neuron in self.input_layer:
            neuron.generate_random_weights(rng, weight_range)

        logger.debug(
            f"Initialized network {list(self.sizes)} "
            f"(seed={seed}, weight_range={weight_range})"
        )

    @property
    def sizes(self) -> List[int]:
        return list(self.topology)

    @property
    def layers(self) -> Tuple[Layer, Layer, Layer]:
        return self.input_layer, self.hidden_layer, self.output_layer

    def feedforward(self, features: Sequence[float]) -> np.ndarray:
        """
        Run one inference.

        Args:
            features: One value per input neuron, normally in [0, 1]

        Returns:
            np.ndarray: The output layer's activations
        """
        self.input_layer.set_activations(features)
        propagate(self.input_layer, self.hidden_layer)
        propagate(self.hidden_layer, self.output_layer)
        return self.output_layer.activations

    def predict(self, features: Sequence[float]) -> int:
        """Return the index of the most activated output neuron."""
        return argmax(self.feedforward(features))

    def backpropagate(self, output_error: Sequence[float]) -> None:
        """Apply one gradient step for the most recent forward pass."""
        backpropagate(
            self.input_layer,
            self.hidden_layer,
            self.output_layer,
            output_error,
            learning_rate=self.learning_rate,
            reapply_sigmoid=self.reapply_sigmoid
        )


def initialize(
    topology: Topology = Topology(),
    seed: Optional[int] = None,
    weight_range: float = config.WEIGHT_RANGE,
    **kwargs
) -> Network:
    """
    Construct a network with randomly initialized weights.

    Example:
        >>> net = initialize(Topology(784, 60, 10), seed=42)
        >>> [len(layer) for layer in net.layers]
        [784, 60, 10]
    """
    return Network(topology, seed=seed, weight_range=weight_range, **kwargs)


def argmax(activations: Sequence[float]) -> int:
    """
    Index of the largest activation.

    Ties go to the first index reaching the maximum, so
    ``argmax([0.3, 0.3, 0.1]) == 0``.

    Raises:
        ShapeMismatchError: If ``activations`` is empty
    """
    if len(activations) == 0:
        raise ShapeMismatchError("Cannot take argmax of an empty layer")
    return int(np.argmax(activations))
