"""
trainer.py
~~~~~~~~~~

Training and evaluation drivers.

Training feeds examples through the network one at a time, in order:
forward pass, error against the one-hot target, backpropagation. There is
no batching and no shuffling. Evaluation only runs forward passes and
counts how often the most activated output neuron matches the label.
"""

import time
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

import numpy as np

from icrnet.exceptions import LabelError, ShapeMismatchError
from icrnet.network import Network, argmax

logger = logging.getLogger(__name__)


class EvaluationResult(NamedTuple):
    """Prediction tally over a dataset."""

    correct: int
    incorrect: int

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> float:
        """Fraction of correct predictions, 0.0 for an empty dataset."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total

    def percentage(self) -> str:
        return f"{self.accuracy * 100:.2f}%"

    def report(self) -> str:
        """Summary in the ``poz`` / ``neg`` / ``average`` format."""
        return (
            f"poz: {self.correct}\n"
            f"neg: {self.incorrect}\n"
            f"average: {self.percentage()}"
        )


def _check_pairs(samples: Sequence, labels: Sequence) -> None:
    if len(samples) != len(labels):
        raise ShapeMismatchError(
            f"Got {len(samples)} samples but {len(labels)} labels"
        )


def _as_label(label, output_size: int) -> int:
    """
    Convert ``label`` to a class index.

    Raises:
        LabelError: If ``label`` is not integral or does not name one of
            the ``output_size`` output neurons
    """
    if isinstance(label, (bool, np.bool_)):
        raise LabelError(f"Label {label!r} is not an integer")
    if not isinstance(label, (int, np.integer)):
        try:
            integral = float(label).is_integer()
        except (TypeError, ValueError):
            integral = False
        if not integral:
            raise LabelError(f"Label {label!r} is not an integer")
    index = int(label)
    if not 0 <= index < output_size:
        raise LabelError(
            f"Label {index} out of range for {output_size} output neurons"
        )
    return index


def _check_labels(labels: Sequence, output_size: int) -> List[int]:
    return [_as_label(label, output_size) for label in labels]


def one_hot_error(label: int, outputs: Sequence[float]) -> np.ndarray:
    """
    Signed error of every output neuron against a one-hot target.

    Positive entries mean the network under-predicted that class.

    Raises:
        LabelError: If ``label`` is not an index into ``outputs``
    """
    outputs = np.asarray(outputs, dtype=float)
    if not 0 <= label < len(outputs):
        raise LabelError(
            f"Label {label} out of range for {len(outputs)} output neurons"
        )
    target = np.zeros(len(outputs))
    target[label] = 1.0
    return target - outputs


def train_example(network: Network, features: Sequence[float],
                  label: int) -> np.ndarray:
    """
    Train on a single example.

    Returns:
        np.ndarray: The output error measured before the update
    """
    outputs = network.feedforward(features)
    error = one_hot_error(_as_label(label, len(outputs)), outputs)
    network.backpropagate(error)
    return error


def evaluate(network: Network, samples: Sequence[Sequence[float]],
             labels: Sequence[int]) -> EvaluationResult:
    """
    Count correct predictions over a labelled dataset.

    Raises:
        ShapeMismatchError: If the sample and label counts differ
        LabelError: If a label is not an integer naming an output neuron
    """
    _check_pairs(samples, labels)
    labels = _check_labels(labels, len(network.output_layer))
    correct = 0
    for features, label in zip(samples, labels):
        if argmax(network.feedforward(features)) == label:
            correct += 1
    return EvaluationResult(correct, len(labels) - correct)


def train(
    network: Network,
    samples: Sequence[Sequence[float]],
    labels: Sequence[int],
    epochs: int = 1,
    test_samples: Optional[Sequence[Sequence[float]]] = None,
    test_labels: Optional[Sequence[int]] = None,
    callback: Optional[Callable[[Dict[str, Any]], None]] = None
) -> None:
    """
    Train the network with stochastic backpropagation.

    Args:
        network: Network to train in place
        samples: Feature vectors, one per example
        labels: Ground-truth class of each example
        epochs: Number of passes over the data
        test_samples: If given with ``test_labels``, the network is
            evaluated after each epoch
        test_labels: Labels of ``test_samples``
        callback: Called after each epoch with a dict holding ``epoch``,
            ``total_epochs``, ``elapsed_time``, ``accuracy``, ``correct``
            and ``total`` (the last three are None without test data)

    Raises:
        ShapeMismatchError: If sample and label counts differ
        LabelError: If a label is not an integer naming an output neuron;
            raised before any weight changes
        ValueError: If ``epochs`` is not positive
    """
    if epochs < 1:
        raise ValueError(f"epochs must be a positive integer, got {epochs}")
    _check_pairs(samples, labels)
    output_size = len(network.output_layer)
    # All labels are checked before the first weight update
    labels = _check_labels(labels, output_size)
    has_test_data = test_samples is not None and test_labels is not None
    if has_test_data:
        _check_pairs(test_samples, test_labels)
        test_labels = _check_labels(test_labels, output_size)

    start_time = time.time()
    for epoch in range(1, epochs + 1):
        for features, label in zip(samples, labels):
            train_example(network, features, label)

        result = None
        if has_test_data:
            result = evaluate(network, test_samples, test_labels)
            logger.info(
                f"Epoch {epoch}/{epochs}: {result.correct} / {result.total} "
                f"({result.percentage()})"
            )
        else:
            logger.info(f"Epoch {epoch}/{epochs} complete")

        if callback is not None:
            callback({
                'epoch': epoch,
                'total_epochs': epochs,
                'elapsed_time': time.time() - start_time,
                'accuracy': result.accuracy if result else None,
                'correct': result.correct if result else None,
                'total': result.total if result else None
            })
