"""
config.py
~~~~~~~~~

Network topology, training defaults and environment-driven settings.

Defaults target handwritten digit recognition: 28x28 grayscale inputs,
60 hidden neurons, 10 output classes, a learning rate of 0.1, 4000
training and 2000 test samples.
"""

import os
import logging
from typing import NamedTuple, Optional

from icrnet.exceptions import TopologyError

# ============================================================================
# DEFAULTS
# ============================================================================

INPUT_SIZE = 784
HIDDEN_SIZE = 60
OUTPUT_SIZE = 10

LEARNING_RATE = 0.1

# Initial weights are drawn uniformly from [-WEIGHT_RANGE, WEIGHT_RANGE)
WEIGHT_RANGE = 0.5

TRAIN_SIZE = 4000
TEST_SIZE = 2000

# Dataset directory layout, relative to the data directory
TRAIN_PREFIX = os.path.join('train', 'digit_')
TEST_PREFIX = os.path.join('test', 'digit_')
TRAIN_LABELS = 'train_gt.txt'
TEST_LABELS = 'test_gt.txt'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Topology(NamedTuple):
    """Sizes of the input, hidden and output layers."""

    input_size: int = INPUT_SIZE
    hidden_size: int = HIDDEN_SIZE
    output_size: int = OUTPUT_SIZE

    def validate(self) -> 'Topology':
        """
        Check that every layer size is a positive integer.

        Returns:
            Topology: self, so the call can be chained

        Raises:
            TopologyError: If any size is not a positive integer
        """
        for name, size in zip(self._fields, self):
            if isinstance(size, bool) or not isinstance(size, int) or size < 1:
                raise TopologyError(
                    f"{name} must be a positive integer, got {size!r}"
                )
        return self


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


class Settings(NamedTuple):
    """Run settings for the training driver."""

    data_dir: str = 'data/digits'
    topology: Topology = Topology()
    learning_rate: float = LEARNING_RATE
    weight_range: float = WEIGHT_RANGE
    train_size: int = TRAIN_SIZE
    test_size: int = TEST_SIZE
    seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> 'Settings':
        """
        Build settings from ``ICRNET_*`` environment variables.

        Unset variables fall back to the module defaults.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        seed = os.getenv('ICRNET_SEED')
        settings = cls(
            data_dir=os.getenv('ICRNET_DATA_DIR', cls._field_defaults['data_dir']),
            topology=Topology(
                hidden_size=_env_int('ICRNET_HIDDEN_SIZE', HIDDEN_SIZE)
            ),
            learning_rate=_env_float('ICRNET_LEARNING_RATE', LEARNING_RATE),
            train_size=_env_int('ICRNET_TRAIN_SIZE', TRAIN_SIZE),
            test_size=_env_int('ICRNET_TEST_SIZE', TEST_SIZE),
            seed=_env_int('ICRNET_SEED', 0) if seed else None,
        )
        settings.topology.validate()
        if settings.learning_rate <= 0:
            raise ValueError(
                f"learning rate must be positive, got {settings.learning_rate}"
            )
        return settings


def configure_logging(level: Optional[str] = None) -> None:
    """
    Set up logging based on environment.

    - In production: keep icrnet at INFO and silence debug chatter
    - In development: honour LOG_LEVEL (default INFO) everywhere

    Args:
        level: Explicit level name, overrides the LOG_LEVEL variable
    """
    log_level_str = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    is_production = os.getenv('ICRNET_ENV') == 'production'

    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    if is_production:
        logging.getLogger('matplotlib').setLevel(logging.WARNING)
        logging.getLogger('icrnet').setLevel(logging.INFO)
    else:
        logging.getLogger('icrnet').setLevel(log_level)
