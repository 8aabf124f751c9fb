import pathlib
import sys
from collections.abc import Callable

import pytest


FAKE_UCI = pathlib.Path(__file__).with_name("fake_uci.py")


@pytest.fixture
def engine_command() -> Callable[[str], list[str]]:
    """Build the command line for the fake UCI engine in a given mode."""

    def make(mode: str = "normal") -> list[str]:
        return [sys.executable, str(FAKE_UCI), mode]

    return make
