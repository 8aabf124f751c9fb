"""Miscellaneous utility functions that might come in handy."""

import logging
import time
from typing import Self


__all__ = ("catchtime",)


class catchtime:
    """A context manager that measures how long its block takes, in seconds.

    Based on code from StackOverflow: https://stackoverflow.com/a/69156219.

    Parameters
    ----------
    label: str, default="Block"
        What is being timed, for the log message.
    logger: logging.Logger, optional
        Where to log the elapsed time on exit, if anywhere.

    Attributes
    ----------
    elapsed: float
        The time the block took. Zero until it finishes.
    """

    def __init__(self, label: str = "Block", logger: logging.Logger | None = None) -> None:
        self.label = label
        self.logger = logger
        self.elapsed = 0.0
        self._start = 0.0

    def __enter__(self) -> Self:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.elapsed = time.perf_counter() - self._start
        if self.logger:
            self.logger.info("%s -- Time: %.5f", self.label, self.elapsed)
