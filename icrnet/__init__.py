"""
icrnet package
~~~~~~~~~~~~~~

Three-layer feed-forward network trained by stochastic backpropagation
for handwritten digit recognition. Contains the neuron/layer data model,
the forward and backward passes, dataset loading utilities, the training
and evaluation driver, and a command line interface.
"""

from icrnet.config import Topology
from icrnet.exceptions import (
    DatasetError,
    LabelError,
    ShapeMismatchError,
    TopologyError,
)
from icrnet.network import Layer, Network, Neuron, argmax, initialize

__version__ = "1.0.0"

__all__ = [
    "DatasetError",
    "LabelError",
    "Layer",
    "Network",
    "Neuron",
    "ShapeMismatchError",
    "Topology",
    "TopologyError",
    "argmax",
    "initialize",
]
