"""Gambit's logging setup.

Based on Umbra's work: https://github.com/AbstractUmbra/Mipha/blob/main/bot.py#L91
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Self

from discord.utils import _ColourFormatter as ColourFormatter, stream_supports_colour  # type: ignore # Because color.


__all__ = ("LoggingManager",)

LOG_FORMAT = logging.Formatter("[{asctime}] [{levelname:<8}] {name}: {message}", "%Y-%m-%d %H:%M:%S", style="{")

# Third-party loggers and the level each one is held to.
QUIET_LOGGERS = {
    "discord": logging.INFO,
    "discord.http": logging.INFO,
    "PIL": logging.WARNING,
    "asyncio": logging.WARNING,
}


class RemoveNoise(logging.Filter):
    """Filter for "discord.state" that drops its warnings about "referencing an unknown" guild or channel."""

    def __init__(self) -> None:
        super().__init__(name="discord.state")

    def filter(self, record: logging.LogRecord) -> bool:
        return not (record.levelno == logging.WARNING and "referencing an unknown" in record.msg)


class LoggingManager:
    """Installs the bot's log handlers for as long as it's used as a context manager.

    Parameters
    ----------
    stream: `bool`, default=True
        Whether to also log to stderr.
    logging_path: `Path`, optional
        The directory for the log files. Defaults to "./logs/".
    level: `int`, default=logging.INFO
        The level of the root logger.

    Attributes
    ----------
    log: `logging.Logger`
        The root logger that handlers are attached to.
    max_bytes: `int`
        The maximum size of each log file.
    handlers: list[`logging.Handler`]
        The handlers this manager installed, removed again on exit.
    """

    def __init__(self, *, stream: bool = True, logging_path: Path | None = None, level: int = logging.INFO) -> None:
        self.log = logging.getLogger()
        self.max_bytes = 32 * 1024 * 1024  # 32MiB
        self.logging_path = logging_path or Path("./logs/")
        self.stream = stream
        self.level = level
        self.handlers: list[logging.Handler] = []

    def _file_handler(self) -> logging.Handler:
        self.logging_path.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=self.logging_path / "gambit.log",
            encoding="utf-8",
            mode="w",
            maxBytes=self.max_bytes,
            backupCount=5,
        )
        handler.setFormatter(LOG_FORMAT)
        return handler

    @staticmethod
    def _stream_handler() -> logging.Handler:
        handler = logging.StreamHandler()
        handler.setFormatter(ColourFormatter() if stream_supports_colour(handler.stream) else LOG_FORMAT)
        return handler

    def __enter__(self) -> Self:
        for name, level in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(level)
        logging.getLogger("discord.state").addFilter(RemoveNoise())
        self.log.setLevel(self.level)

        self.handlers.append(self._file_handler())
        if self.stream:
            self.handlers.append(self._stream_handler())

        for handler in self.handlers:
            self.log.addHandler(handler)
        return self

    def __exit__(self, *exc_info: object) -> None:
        while self.handlers:
            handler = self.handlers.pop()
            self.log.removeHandler(handler)
            handler.close()

    async def __aenter__(self) -> Self:
        return self.__enter__()

    async def __aexit__(self, *exc_info: object) -> None:
        self.__exit__(*exc_info)
