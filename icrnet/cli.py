"""
cli.py
~~~~~~

Command line entry point.

    icrnet train --data-dir data/digits
    icrnet train --npz data/digits.npz --epochs 3 --seed 1
    icrnet convert --data-dir data/digits --output data/digits.npz
"""

import logging
from typing import Optional

import click

from icrnet import __version__
from icrnet.config import Settings, Topology, configure_logging
from icrnet.digit_loader import (
    DigitDataset,
    as_features,
    load_digit_directory,
    load_npz_dataset,
    save_npz_dataset,
    verify_npz_dataset,
)
from icrnet.exceptions import DatasetError
from icrnet.network import Network
from icrnet.timer import timed
from icrnet.trainer import evaluate, train

logger = logging.getLogger(__name__)


def _load_dataset(data_dir: str, npz: Optional[str], train_size: int,
                  test_size: int, input_size: int) -> DigitDataset:
    if npz:
        return load_npz_dataset(npz)
    return load_digit_directory(data_dir, train_size, test_size, input_size)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Train and evaluate a three-layer digit recognition network."""
    configure_logging('DEBUG' if verbose else None)


@cli.command(name="train")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None,
              help="Directory with train/, test/ and the *_gt.txt label files")
@click.option("--npz", type=click.Path(dir_okay=False, exists=True),
              default=None, help="Read the dataset from an NPZ archive instead")
@click.option("--hidden-size", type=click.IntRange(min=1), default=None,
              help="Number of hidden neurons")
@click.option("--train-size", type=click.IntRange(min=0), default=None,
              help="Number of training images to read")
@click.option("--test-size", type=click.IntRange(min=0), default=None,
              help="Number of test images to read")
@click.option("--epochs", type=click.IntRange(min=1), default=1,
              show_default=True, help="Passes over the training data")
@click.option("--learning-rate", type=click.FloatRange(min=0, min_open=True),
              default=None, help="Gradient descent step size")
@click.option("--seed", type=int, default=None,
              help="Seed for the initial weights")
@click.option("--standard-derivative", is_flag=True,
              help="Use a*(1-a) for the hidden error term instead of "
                   "re-applying the sigmoid")
def train_command(data_dir: Optional[str], npz: Optional[str],
                  hidden_size: Optional[int], train_size: Optional[int],
                  test_size: Optional[int], epochs: int,
                  learning_rate: Optional[float], seed: Optional[int],
                  standard_derivative: bool) -> None:
    """Train on the training split and report test accuracy."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    topology = Topology(
        settings.topology.input_size,
        hidden_size or settings.topology.hidden_size,
        settings.topology.output_size
    )
    try:
        dataset = _load_dataset(
            data_dir or settings.data_dir,
            npz,
            settings.train_size if train_size is None else train_size,
            settings.test_size if test_size is None else test_size,
            topology.input_size
        )
    except DatasetError as e:
        logger.error(str(e))
        raise click.ClickException(str(e)) from e

    train_features, test_features = as_features(dataset)
    if train_features.shape[1:] != (topology.input_size,):
        raise click.ClickException(
            f"Samples have shape {train_features.shape[1:]}, "
            f"expected ({topology.input_size},)"
        )

    net = Network(
        topology,
        seed=settings.seed if seed is None else seed,
        weight_range=settings.weight_range,
        learning_rate=learning_rate or settings.learning_rate,
        reapply_sigmoid=not standard_derivative
    )

    try:
        with timed("Training..."):
            train(net, train_features, dataset.train_labels, epochs=epochs)
        with timed("Testing..."):
            result = evaluate(net, test_features, dataset.test_labels)
    except ValueError as e:
        logger.error(f"Training failed: {e}")
        raise click.ClickException(str(e)) from e

    click.echo(result.report())


@cli.command(name="convert")
@click.option("--data-dir", type=click.Path(file_okay=False, exists=True),
              required=True, help="Directory in the PNG layout")
@click.option("--output", "-o", type=click.Path(dir_okay=False),
              required=True, help="NPZ file to write")
@click.option("--train-size", type=click.IntRange(min=0), default=None)
@click.option("--test-size", type=click.IntRange(min=0), default=None)
def convert_command(data_dir: str, output: str, train_size: Optional[int],
                    test_size: Optional[int]) -> None:
    """Convert a PNG digit directory into a compressed NPZ archive."""
    try:
        settings = Settings.from_env()
        dataset = load_digit_directory(
            data_dir,
            settings.train_size if train_size is None else train_size,
            settings.test_size if test_size is None else test_size
        )
        save_npz_dataset(output, dataset)
        verified = verify_npz_dataset(output, dataset)
    except (DatasetError, ValueError) as e:
        logger.error(str(e))
        raise click.ClickException(str(e)) from e

    if not verified:
        raise click.ClickException(f"Verification of {output} failed")
    click.echo(f"Wrote {output}")


def main() -> None:
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
