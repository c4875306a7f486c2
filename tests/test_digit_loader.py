"""
test_digit_loader.py
~~~~~~~~~~~~~~~~~~~~

Tests for reading digit images, label files and NPZ archives.
"""

import os

import numpy as np
import pytest

from conftest import write_png
from icrnet.digit_loader import (
    DigitDataset,
    image_path,
    load_digit_directory,
    load_npz_dataset,
    normalize,
    read_ground_truth,
    read_image,
    read_image_data,
    save_npz_dataset,
    verify_npz_dataset,
)
from icrnet.exceptions import DatasetError


@pytest.fixture
def small_dataset():
    rng = np.random.default_rng(5)
    return DigitDataset(
        train_images=rng.integers(0, 256, size=(6, 16)),
        train_labels=np.array([0, 1, 2, 3, 4, 5]),
        test_images=rng.integers(0, 256, size=(3, 16)),
        test_labels=np.array([6, 7, 8]),
    )


@pytest.mark.unit
class TestReadGroundTruth:

    def test_reads_whitespace_separated_labels(self, tmp_path):
        path = tmp_path / "gt.txt"
        path.write_text("3 1 4\n1 5\n9\n")
        assert read_ground_truth(str(path)).tolist() == [3, 1, 4, 1, 5, 9]

    def test_trailing_whitespace_adds_nothing(self, tmp_path):
        path = tmp_path / "gt.txt"
        path.write_text("7 2\n\n   \n")
        assert read_ground_truth(str(path)).tolist() == [7, 2]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "gt.txt"
        path.write_text("")
        assert len(read_ground_truth(str(path))) == 0

    def test_malformed_label(self, tmp_path):
        path = tmp_path / "gt.txt"
        path.write_text("1 two 3")
        with pytest.raises(DatasetError) as exc_info:
            read_ground_truth(str(path))
        assert exc_info.value.path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetError):
            read_ground_truth(str(tmp_path / "missing.txt"))


@pytest.mark.unit
class TestReadImages:

    def test_image_path_zero_pads(self):
        assert image_path("train/digit_", 7) == "train/digit_0007.png"
        assert image_path("train/digit_", 1234) == "train/digit_1234.png"

    def test_pixels_are_inverted(self, tmp_path):
        gray = np.array([[0, 255], [128, 30]])
        path = str(tmp_path / "digit_0000.png")
        write_png(path, gray)
        assert read_image(path).tolist() == [[255, 0], [127, 225]]

    def test_rows_are_flattened_in_order(self, tmp_path):
        prefix = str(tmp_path / "digit_")
        first = np.arange(16).reshape(4, 4) * 10
        second = 255 - first
        write_png(image_path(prefix, 0), first)
        write_png(image_path(prefix, 1), second)

        samples = read_image_data(prefix, 2, input_size=16)

        assert samples.shape == (2, 16)
        assert samples[0].tolist() == (255 - first).ravel().tolist()
        assert samples[1].tolist() == first.ravel().tolist()

    def test_zero_count(self, tmp_path):
        samples = read_image_data(str(tmp_path / "digit_"), 0, input_size=16)
        assert samples.shape == (0, 16)

    def test_wrong_image_size(self, tmp_path):
        prefix = str(tmp_path / "digit_")
        write_png(image_path(prefix, 0), np.zeros((3, 3)))
        with pytest.raises(DatasetError) as exc_info:
            read_image_data(prefix, 1, input_size=16)
        assert "9 pixels" in str(exc_info.value)

    def test_missing_image(self, tmp_path):
        prefix = str(tmp_path / "digit_")
        write_png(image_path(prefix, 0), np.zeros((4, 4)))
        with pytest.raises(DatasetError) as exc_info:
            read_image_data(prefix, 2, input_size=16)
        assert exc_info.value.path == image_path(prefix, 1)

    def test_undecodable_image(self, tmp_path):
        path = tmp_path / "digit_0000.png"
        path.write_bytes(b"not a png")
        with pytest.raises(DatasetError):
            read_image(str(path))

    def test_normalize(self):
        assert np.allclose(normalize([0, 51, 255]), [0.0, 0.2, 1.0])


@pytest.mark.integration
class TestDigitDirectory:

    def test_loads_both_splits(self, digit_directory):
        data_dir = digit_directory(train_size=3, test_size=2, side=28)
        dataset = load_digit_directory(data_dir, 3, 2)

        assert dataset.train_images.shape == (3, 784)
        assert dataset.test_images.shape == (2, 784)
        assert dataset.train_labels.tolist() == [0, 1, 2]
        assert dataset.test_labels.tolist() == [0, 1]
        assert dataset.train_images.min() >= 0
        assert dataset.train_images.max() <= 255

    def test_too_few_labels(self, digit_directory):
        data_dir = digit_directory(train_size=3, test_size=2, side=28,
                                   labels=[1, 2])
        with pytest.raises(DatasetError) as exc_info:
            load_digit_directory(data_dir, 3, 2)
        assert "3 images but only 2 labels" in str(exc_info.value)

    def test_longer_label_file_is_truncated(self, digit_directory):
        data_dir = digit_directory(train_size=3, test_size=2, side=28,
                                   labels=[4, 3, 2, 1, 0])
        dataset = load_digit_directory(data_dir, 3, 2)

        assert dataset.train_labels.tolist() == [4, 3, 2]
        assert dataset.test_labels.tolist() == [4, 3]
        assert len(dataset.train_labels) == len(dataset.train_images)
        assert len(dataset.test_labels) == len(dataset.test_images)

    def test_fewer_images_than_requested(self, digit_directory):
        data_dir = digit_directory(train_size=2, test_size=2, side=28)
        with pytest.raises(DatasetError):
            load_digit_directory(data_dir, 5, 2)


@pytest.mark.unit
class TestNpzArchive:

    def test_save_and_load(self, tmp_path, small_dataset):
        path = str(tmp_path / "out" / "digits.npz")
        save_npz_dataset(path, small_dataset)

        assert os.path.exists(path)
        loaded = load_npz_dataset(path)
        assert np.array_equal(loaded.train_images, small_dataset.train_images)
        assert np.array_equal(loaded.test_labels, small_dataset.test_labels)

    def test_verify(self, tmp_path, small_dataset):
        path = str(tmp_path / "digits.npz")
        save_npz_dataset(path, small_dataset)

        assert verify_npz_dataset(path, small_dataset) is True
        altered = small_dataset._replace(test_labels=np.array([6, 7, 9]))
        assert verify_npz_dataset(path, altered) is False

    def test_missing_array(self, tmp_path):
        path = str(tmp_path / "partial.npz")
        np.savez_compressed(path, train_images=np.zeros((1, 4)))
        with pytest.raises(DatasetError) as exc_info:
            load_npz_dataset(path)
        assert "missing array" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetError):
            load_npz_dataset(str(tmp_path / "nope.npz"))

    def test_inconsistent_split(self, tmp_path):
        path = str(tmp_path / "bad.npz")
        np.savez_compressed(
            path,
            train_images=np.zeros((2, 4)), train_labels=np.zeros(3),
            test_images=np.zeros((1, 4)), test_labels=np.zeros(1)
        )
        with pytest.raises(DatasetError):
            load_npz_dataset(path)
