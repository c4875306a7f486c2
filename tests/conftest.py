"""
conftest.py
~~~~~~~~~~~

Shared fixtures for the icrnet test suite.
"""

import os

import matplotlib
matplotlib.use('Agg')
import numpy as np
import pytest
from matplotlib import image as mpimg

from icrnet import Network, Topology


def write_png(path, gray):
    """Write an 8-bit grayscale array as an RGB PNG with equal channels."""
    gray = np.asarray(gray, dtype=np.uint8)
    mpimg.imsave(path, np.stack([gray, gray, gray], axis=-1))


@pytest.fixture
def small_network():
    """A seeded 3-4-2 network."""
    return Network(Topology(3, 4, 2), seed=42)


@pytest.fixture
def digit_directory(tmp_path):
    """
    Factory building a dataset directory in the PNG layout.

    Returns the directory path; images are ``side`` x ``side`` with
    reproducible random pixels.
    """
    def build(train_size=3, test_size=2, side=28, labels=None):
        rng = np.random.default_rng(0)
        data_dir = tmp_path / "digits"
        for split, count in (('train', train_size), ('test', test_size)):
            split_dir = data_dir / split
            split_dir.mkdir(parents=True)
            for m in range(count):
                pixels = rng.integers(0, 256, size=(side, side))
                write_png(str(split_dir / f"digit_{m:04d}.png"), pixels)
            split_labels = labels if labels is not None else [
                m % 10 for m in range(count)
            ]
            (data_dir / f"{split}_gt.txt").write_text(
                " ".join(str(label) for label in split_labels) + "\n"
            )
        return str(data_dir)

    return build


@pytest.fixture
def clean_env(monkeypatch):
    """Remove ICRNET_* variables so settings fall back to defaults."""
    for name in list(os.environ):
        if name.startswith('ICRNET_'):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
