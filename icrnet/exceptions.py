"""
exceptions.py
~~~~~~~~~~~~~

Exception types raised by icrnet.

Size and label problems are programming errors on the caller's side and
derive from ``ValueError``; problems reading a dataset from disk derive
from ``RuntimeError`` and always carry the offending path.
"""

from typing import Optional


class TopologyError(ValueError):
    """A layer size is not a positive integer."""


class ShapeMismatchError(ValueError):
    """Two vectors or layers that must agree in length do not."""


class LabelError(ValueError):
    """A ground-truth label does not name an output neuron."""


class DatasetError(RuntimeError):
    """A sample or label file could not be read or decoded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
