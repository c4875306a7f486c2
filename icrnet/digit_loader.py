"""
digit_loader.py
~~~~~~~~~~~~~~~

Loading handwritten digit samples and their ground truth.

Two sources are supported:

- a directory of numbered PNG files (``train/digit_0000.png`` ...) with
  one whitespace-separated label file per split
- a compressed NPZ archive with ``train_images``, ``train_labels``,
  ``test_images`` and ``test_labels`` arrays

Pixels are inverted on load so that ink is bright (``|p - 255|``) and
are kept as integers in [0, 255]; :func:`normalize` scales them to
[0, 1] for the network.
"""

import os
import logging
from typing import Dict, NamedTuple, Tuple

import numpy as np
from matplotlib import image as mpimg

from icrnet import config
from icrnet.exceptions import DatasetError

logger = logging.getLogger(__name__)

# ITU-R 601 luma weights, as used by OpenCV's grayscale conversion
_LUMA = np.array([0.299, 0.587, 0.114])

NPZ_KEYS = ('train_images', 'train_labels', 'test_images', 'test_labels')


class DigitDataset(NamedTuple):
    """Training and test splits held in memory."""

    train_images: np.ndarray
    train_labels: np.ndarray
    test_images: np.ndarray
    test_labels: np.ndarray


def read_ground_truth(path: str) -> np.ndarray:
    """
    Read digit labels from a text file.

    Args:
        path: File with whitespace-separated integer labels

    Returns:
        np.ndarray: Labels in file order (empty for an empty file)

    Raises:
        DatasetError: If the file is missing or holds a non-integer token
    """
    try:
        with open(path, 'r') as f:
            tokens = f.read().split()
    except OSError as e:
        raise DatasetError(f"Cannot read labels from {path}: {e}", path) from e

    try:
        labels = np.array([int(token) for token in tokens], dtype=np.int64)
    except ValueError as e:
        raise DatasetError(f"Malformed label in {path}: {e}", path) from e

    logger.debug(f"Read {len(labels)} labels from {path}")
    return labels


def _to_gray_bytes(pixels: np.ndarray) -> np.ndarray:
    """Convert an image array from ``imread`` to 8-bit grayscale."""
    if pixels.ndim == 3:
        # Drop alpha, then weight the colour channels
        pixels = pixels[..., :3] @ _LUMA
    if np.issubdtype(pixels.dtype, np.floating):
        pixels = np.rint(pixels * 255)
    return pixels.astype(np.int64)


def read_image(path: str) -> np.ndarray:
    """
    Read one PNG as inverted 8-bit grayscale.

    Returns:
        np.ndarray: 2-D integer array, 0 for white background

    Raises:
        DatasetError: If the file is missing or cannot be decoded
    """
    if not os.path.exists(path):
        raise DatasetError(f"Image not found: {path}", path)
    try:
        pixels = mpimg.imread(path)
    except (OSError, ValueError, SyntaxError) as e:
        raise DatasetError(f"Cannot decode image {path}: {e}", path) from e
    return np.abs(_to_gray_bytes(pixels) - 255)


def image_path(prefix: str, index: int) -> str:
    """``prefix`` followed by the zero-padded index and ``.png``."""
    return f"{prefix}{index:04d}.png"


def read_image_data(
    prefix: str,
    count: int,
    input_size: int = config.INPUT_SIZE
) -> np.ndarray:
    """
    Read ``count`` numbered images into a sample matrix.

    Args:
        prefix: Path prefix, e.g. ``data/digits/train/digit_``
        count: Number of images, read as indices ``0 .. count-1``
        input_size: Pixels per image after flattening

    Returns:
        np.ndarray: Shape ``(count, input_size)``, one row-major row per image

    Raises:
        DatasetError: If an image is missing, unreadable, or has a
            different number of pixels
    """
    samples = np.zeros((count, input_size), dtype=np.int64)
    for m in range(count):
        path = image_path(prefix, m)
        pixels = read_image(path).ravel()
        if pixels.size != input_size:
            raise DatasetError(
                f"Image {path} has {pixels.size} pixels, "
                f"expected {input_size}",
                path
            )
        samples[m] = pixels

    logger.info(f"Read {count} images from {prefix}*.png")
    return samples


def normalize(pixels: np.ndarray) -> np.ndarray:
    """Scale 8-bit pixel values to [0, 1]."""
    return np.asarray(pixels, dtype=float) / 255


def _check_split(name: str, images: np.ndarray, labels: np.ndarray,
                 path: str) -> None:
    if len(images) != len(labels):
        raise DatasetError(
            f"{name} split has {len(images)} images "
            f"but {len(labels)} labels",
            path
        )


def _take_labels(name: str, images: np.ndarray, labels: np.ndarray,
                 path: str) -> np.ndarray:
    """The first ``len(images)`` labels; a longer label file is allowed."""
    if len(labels) < len(images):
        raise DatasetError(
            f"{name} split has {len(images)} images "
            f"but only {len(labels)} labels",
            path
        )
    return labels[:len(images)]


def load_digit_directory(
    data_dir: str,
    train_size: int = config.TRAIN_SIZE,
    test_size: int = config.TEST_SIZE,
    input_size: int = config.INPUT_SIZE
) -> DigitDataset:
    """
    Load both splits from the PNG directory layout.

    Expects ``train/digit_NNNN.png``, ``train_gt.txt``,
    ``test/digit_NNNN.png`` and ``test_gt.txt`` under ``data_dir``.

    Only the first ``train_size`` / ``test_size`` labels of each label file
    are used, so a subset of a larger dataset can be loaded.

    Raises:
        DatasetError: If any file is missing or a label file holds fewer
            labels than the images requested
    """
    logger.info(f"Loading digits from {data_dir}...")

    train_labels_path = os.path.join(data_dir, config.TRAIN_LABELS)
    test_labels_path = os.path.join(data_dir, config.TEST_LABELS)

    train_images = read_image_data(
        os.path.join(data_dir, config.TRAIN_PREFIX), train_size, input_size
    )
    train_labels = _take_labels(
        'train', train_images, read_ground_truth(train_labels_path),
        train_labels_path
    )

    test_images = read_image_data(
        os.path.join(data_dir, config.TEST_PREFIX), test_size, input_size
    )
    test_labels = _take_labels(
        'test', test_images, read_ground_truth(test_labels_path),
        test_labels_path
    )

    logger.info(
        f"Data loaded: {len(train_images)} training, "
        f"{len(test_images)} test"
    )
    return DigitDataset(train_images, train_labels, test_images, test_labels)


def save_npz_dataset(path: str, dataset: DigitDataset) -> None:
    """Write ``dataset`` as a compressed NPZ archive."""
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)

    np.savez_compressed(path, **dataset._asdict())

    size = os.path.getsize(path) / (1024 * 1024)  # MB
    logger.info(f"Saved dataset to {path} (size: {size:.2f} MB)")


def load_npz_dataset(path: str) -> DigitDataset:
    """
    Load a dataset written by :func:`save_npz_dataset`.

    Raises:
        DatasetError: If the archive is missing, unreadable, lacks one of
            the expected arrays, or a split is inconsistent
    """
    try:
        with np.load(path) as data:
            arrays: Dict[str, np.ndarray] = {key: data[key] for key in NPZ_KEYS}
    except KeyError as e:
        raise DatasetError(f"Archive {path} is missing array {e}", path) from e
    except (OSError, ValueError) as e:
        raise DatasetError(f"Cannot read archive {path}: {e}", path) from e

    dataset = DigitDataset(**arrays)
    _check_split('train', dataset.train_images, dataset.train_labels, path)
    _check_split('test', dataset.test_images, dataset.test_labels, path)

    logger.info(
        f"Loaded {path}: {len(dataset.train_images)} training, "
        f"{len(dataset.test_images)} test"
    )
    return dataset


def verify_npz_dataset(path: str, original: DigitDataset) -> bool:
    """
    Check that the archive at ``path`` holds exactly ``original``.

    Returns:
        bool: True if every array matches
    """
    loaded = load_npz_dataset(path)
    for key, expected, actual in zip(NPZ_KEYS, original, loaded):
        if not np.array_equal(expected, actual):
            logger.error(f"Array '{key}' in {path} does not match")
            return False
    return True


def as_features(dataset: DigitDataset) -> Tuple[np.ndarray, np.ndarray]:
    """Normalized training and test sample matrices."""
    return normalize(dataset.train_images), normalize(dataset.test_images)
