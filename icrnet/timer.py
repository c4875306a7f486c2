"""
timer.py
~~~~~~~~

Wall-clock instrumentation for the training and testing phases.
"""

import time
import logging
from contextlib import contextmanager
from typing import Generator, Optional

logger = logging.getLogger(__name__)


class Timer:
    """
    Start/stop stopwatch that logs what it measures.

    Example:
        >>> timer = Timer("Training...")
        >>> timer.start()
        >>> # ... work ...
        >>> timer.stop()
    """

    def __init__(self, label: str = ''):
        self.label = label
        self._started_at: Optional[float] = None
        self.elapsed = 0.0

    @property
    def running(self) -> bool:
        return self._started_at is not None

    def start(self) -> 'Timer':
        if self.running:
            raise RuntimeError(f"Timer '{self.label}' is already running")
        logger.info(self.label)
        self._started_at = time.perf_counter()
        return self

    def stop(self) -> float:
        """Stop the timer and return the elapsed seconds."""
        if not self.running:
            raise RuntimeError(f"Timer '{self.label}' was not started")
        self.elapsed = time.perf_counter() - self._started_at
        self._started_at = None
        logger.info(f"{self.label} done in {self.elapsed:.3f} sec")
        return self.elapsed


@contextmanager
def timed(label: str) -> Generator[Timer, None, None]:
    """Time the enclosed block with a :class:`Timer`."""
    timer = Timer(label).start()
    try:
        yield timer
    finally:
        timer.stop()
