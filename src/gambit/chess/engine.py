"""A bridge to a UCI engine running as a subprocess, so the bot has someone to play as.

The protocol itself is handled by python-chess; this wraps it with the lifecycle, time limits and error mapping a game
session expects.
"""

import asyncio
import enum
import logging
from collections.abc import Mapping, Sequence
from typing import Self

import chess
import chess.engine

from ..errors import EngineTimeout, EngineUnavailable


LOGGER = logging.getLogger(__name__)

__all__ = ("EngineState", "EngineBridge")


class EngineState(enum.Enum):
    NOT_STARTED = enum.auto()
    READY = enum.auto()
    SEARCHING = enum.auto()
    CLOSED = enum.auto()


class EngineBridge:
    """Drives one UCI engine process for the length of a game.

    Parameters
    ----------
    command: Sequence[str]
        The engine executable and its arguments.
    options: Mapping[str, str], optional
        UCI options to configure after the handshake.
    handshake_timeout: float, default=10.0
        How long the engine has to become ready after being spawned, in seconds.
    search_grace: float, default=0.5
        How long past the time budget a search reply is still waited for, in seconds.
    stop_grace: float, default=0.5
        How long a late engine has to settle down after being told to stop, in seconds.

    Attributes
    ----------
    state: EngineState
        Where the bridge is in its lifecycle.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        options: Mapping[str, str] | None = None,
        handshake_timeout: float = 10.0,
        search_grace: float = 0.5,
        stop_grace: float = 0.5,
    ) -> None:
        if not command:
            msg = "An engine command is required."
            raise ValueError(msg)

        self.command = list(command)
        self.options = dict(options or {})
        self.handshake_timeout = handshake_timeout
        self.search_grace = search_grace
        self.stop_grace = stop_grace
        self.state = EngineState.NOT_STARTED
        self._transport: asyncio.SubprocessTransport | None = None
        self._protocol: chess.engine.UciProtocol | None = None

    def __repr__(self) -> str:
        return f"<EngineBridge command={self.command!r} state={self.state.name}>"

    async def __aenter__(self) -> Self:
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def pid(self) -> int | None:
        """`int | None`: The process id of the engine, if it's running."""

        return self._transport.get_pid() if self._transport else None

    async def start(self) -> Self:
        """Spawn the engine, complete the UCI handshake and apply the configured options.

        Raises
        ------
        EngineUnavailable
            The engine couldn't be spawned, rejected an option or didn't become ready in time. The bridge is closed.
        """

        if self.state is not EngineState.NOT_STARTED:
            msg = f"Engine bridge can't be started from state {self.state.name}."
            raise RuntimeError(msg)

        try:
            async with asyncio.timeout(self.handshake_timeout):
                self._transport, self._protocol = await chess.engine.popen_uci(
                    self.command,
                    stderr=asyncio.subprocess.DEVNULL,
                )
                await self._protocol.configure(self.options)
                await self._protocol.ping()
        except (TimeoutError, OSError, chess.engine.EngineError) as err:
            LOGGER.warning("Engine %r failed to start: %r", self.command, err)
            await self.close()
            raise EngineUnavailable from err

        self.state = EngineState.READY
        LOGGER.info("Engine %r is ready (pid %s).", self.command, self.pid)
        return self

    async def best_move(self, fen: str, time_budget: float) -> str:
        """Ask the engine for its move in a position.

        Parameters
        ----------
        fen: str
            The position to search, in FEN.
        time_budget: float
            How long the engine may think, in seconds.

        Returns
        -------
        str
            The engine's move in UCI notation, e.g. "e7e5".

        Raises
        ------
        EngineTimeout
            The engine didn't answer within the budget.
        EngineUnavailable
            The bridge isn't running, or the engine crashed, broke protocol or had no move to offer.
        RuntimeError
            A search is already in progress on this bridge.
        """

        if self.state is EngineState.SEARCHING:
            msg = "Only one search may be in progress per engine."
            raise RuntimeError(msg)
        if self.state is not EngineState.READY or self._protocol is None:
            raise EngineUnavailable

        board = chess.Board(fen)
        self.state = EngineState.SEARCHING
        try:
            async with asyncio.timeout(time_budget + self.search_grace):
                result = await self._protocol.play(board, chess.engine.Limit(time=time_budget), game=self)
        except TimeoutError:
            await self._recover_from_timeout()
            raise EngineTimeout from None
        except chess.engine.EngineError as err:
            LOGGER.warning("Engine %r failed during a search: %r", self.command, err)
            await self.close()
            raise EngineUnavailable from err
        finally:
            if self.state is EngineState.SEARCHING:
                self.state = EngineState.READY

        if not result.move:
            LOGGER.warning("Engine %r had no move to offer in %s.", self.command, fen)
            await self.close()
            raise EngineUnavailable
        return result.move.uci()

    async def _recover_from_timeout(self) -> None:
        """Wait for a late engine to obey the stop that went out with the cancelled search, and kill it if it won't."""

        LOGGER.warning("Engine %r ran past its time budget; asking it to stop.", self.command)
        assert self._protocol
        try:
            async with asyncio.timeout(self.stop_grace):
                await self._protocol.ping()
        except (TimeoutError, chess.engine.EngineError):
            LOGGER.warning("Engine %r ignored the stop request; shutting it down.", self.command)
            await self.close()

    async def close(self) -> None:
        """Shut the engine down. Safe to call more than once, and on a bridge that never started."""

        self.state = EngineState.CLOSED
        transport, self._transport = self._transport, None
        protocol, self._protocol = self._protocol, None
        if transport is None:
            return

        pid = transport.get_pid()
        try:
            if protocol is not None:
                async with asyncio.timeout(1):
                    await protocol.quit()
        except (TimeoutError, chess.engine.EngineError) as err:
            LOGGER.warning("Engine %r didn't quit cleanly, killing it: %r", self.command, err)
        finally:
            transport.close()

        LOGGER.info("Engine %r closed (pid %s, exit code %s).", self.command, pid, transport.get_returncode())
