"""
activation.py
~~~~~~~~~~~~~

Logistic activation used by every neuron of the network.
"""

import numpy as np


def sigmoid(x):
    """
    The sigmoid function, ``1 / (1 + e^-x)``.

    Works on scalars and numpy arrays. The argument is clipped to
    [-500, 500] so that ``exp`` never overflows; inputs that large
    saturate to 0 or 1 anyway.
    """
    return 1.0 / (1.0 + np.exp(-np.clip(x, -500, 500)))


def hidden_derivative(activation, reapply_sigmoid: bool = True):
    """
    Derivative factor applied to a hidden neuron's error term.

    By default the already-activated value is run through the sigmoid
    once more, i.e. ``s * (1 - s)`` with ``s = sigmoid(activation)``.
    Pass ``reapply_sigmoid=False`` for the textbook ``a * (1 - a)``.
    """
    if reapply_sigmoid:
        s = sigmoid(activation)
        return s * (1 - s)
    return activation * (1 - activation)
