"""
backprop.py
~~~~~~~~~~~

Forward propagation and the backpropagation weight update.

Both functions operate on layers in place. ``propagate`` rewrites the
activations of its destination layer; ``backpropagate`` rewrites the
weights of the input and hidden layers and leaves every activation
untouched.
"""

from typing import TYPE_CHECKING, Sequence

import numpy as np

from icrnet import config
from icrnet.activation import hidden_derivative, sigmoid
from icrnet.exceptions import ShapeMismatchError

if TYPE_CHECKING:
    from icrnet.network import Layer


def _check_fan_out(source: 'Layer', destination: 'Layer') -> None:
    for index, neuron in enumerate(source):
        if len(neuron.weights) != len(destination):
            raise ShapeMismatchError(
                f"Neuron {index} has {len(neuron.weights)} outgoing weights "
                f"but the next layer has {len(destination)} neurons"
            )


def propagate(source: 'Layer', destination: 'Layer') -> None:
    """
    Compute the activations of ``destination`` from ``source``.

    For each destination neuron ``j`` the activation becomes the sigmoid
    of ``sum(source[i].weights[j] * source[i].activation)``.

    Raises:
        ShapeMismatchError: If a source neuron's weight vector does not
            have exactly one entry per destination neuron
    """
    _check_fan_out(source, destination)

    raw = np.zeros(len(destination))
    for neuron in source:
        raw += neuron.weights * neuron.activation

    for neuron, value in zip(destination, sigmoid(raw)):
        neuron.activation = float(value)


def compute_hidden_deltas(
    hidden_layer: 'Layer',
    output_error: Sequence[float],
    reapply_sigmoid: bool = True
) -> np.ndarray:
    """
    Error term of every hidden neuron.

    ``delta[i] = dot(hidden[i].weights, output_error) * derivative(hidden[i])``
    using the hidden-to-output weights as they are at call time.
    """
    output_error = np.asarray(output_error, dtype=float)
    deltas = np.empty(len(hidden_layer))
    for i, neuron in enumerate(hidden_layer):
        backpropagated_error = float(np.dot(neuron.weights, output_error))
        deltas[i] = backpropagated_error * hidden_derivative(
            neuron.activation, reapply_sigmoid
        )
    return deltas


def backpropagate(
    input_layer: 'Layer',
    hidden_layer: 'Layer',
    output_layer: 'Layer',
    output_error: Sequence[float],
    learning_rate: float = config.LEARNING_RATE,
    reapply_sigmoid: bool = True
) -> None:
    """
    One stochastic gradient step for a single training example.

    Args:
        input_layer: Layer whose weights feed the hidden layer
        hidden_layer: Layer whose weights feed the output layer
        output_layer: Output layer, only its size is used
        output_error: ``target - output`` for every output neuron
        learning_rate: Step size
        reapply_sigmoid: Derivative variant for the hidden error term

    Raises:
        ShapeMismatchError: If ``output_error`` does not have one entry
            per output neuron, or the layers are not wired together
    """
    if len(output_error) != len(output_layer):
        raise ShapeMismatchError(
            f"Output layer has {len(output_layer)} neurons, "
            f"got {len(output_error)} error values"
        )
    _check_fan_out(input_layer, hidden_layer)
    _check_fan_out(hidden_layer, output_layer)
    output_error = np.asarray(output_error, dtype=float)

    # Must read the hidden->output weights before they are updated below
    hidden_deltas = compute_hidden_deltas(
        hidden_layer, output_error, reapply_sigmoid
    )

    for neuron in input_layer:
        neuron.weights += learning_rate * hidden_deltas * neuron.activation

    for neuron in hidden_layer:
        neuron.weights += learning_rate * output_error * neuron.activation
