"""The registry of games in progress, one per channel."""

import asyncio
import logging
from collections.abc import Callable

from ..errors import EngineUnavailable, GameAlreadyInProgress
from .engine import EngineBridge
from .rules import ChessRules, RulesEngine
from .session import MAX_AUTOPLAY_PLIES, Session


LOGGER = logging.getLogger(__name__)

__all__ = ("SessionRegistry",)


class SessionRegistry:
    """Keeps track of which channel has which game.

    Every lookup and change to the mapping happens under one lock, and nothing slow happens while it's held: engines
    are started and shut down outside of it, so one channel's engine never stalls another channel.

    Parameters
    ----------
    engine_factory: Callable[[], EngineBridge], optional
        Makes a new, unstarted engine bridge for games against the bot. Without one, such games can't be created.
    rules_factory: Callable[[], RulesEngine], default=ChessRules
        Makes the rules engine for each new game.
    move_time: float, default=0.1
        How long the engine may think per move, in seconds.
    max_autoplay_plies: int, default=MAX_AUTOPLAY_PLIES
        The most engine moves a session may make in a row.
    """

    def __init__(
        self,
        *,
        engine_factory: Callable[[], EngineBridge] | None = None,
        rules_factory: Callable[[], RulesEngine] = ChessRules,
        move_time: float = 0.1,
        max_autoplay_plies: int = MAX_AUTOPLAY_PLIES,
    ) -> None:
        self.engine_factory = engine_factory
        self.rules_factory = rules_factory
        self.move_time = move_time
        self.max_autoplay_plies = max_autoplay_plies

        self._sessions: dict[int, Session] = {}
        self._pending: set[int] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._sessions

    async def create(
        self,
        channel_id: int,
        white_id: int,
        black_id: int,
        *,
        engine_player_id: int | None = None,
    ) -> Session:
        """Start a game in a channel.

        Parameters
        ----------
        channel_id: int
            The channel to play in.
        white_id: int
            The player with the white pieces.
        black_id: int
            The player with the black pieces.
        engine_player_id: int, optional
            If given, the participant the engine plays for. The engine is started before the game is registered.

        Returns
        -------
        Session
            The new game.

        Raises
        ------
        GameAlreadyInProgress
            The channel already has a game, or one is being set up.
        EngineUnavailable
            The engine was wanted but couldn't be started. Nothing is registered.
        """

        async with self._lock:
            if existing := self._sessions.get(channel_id):
                raise GameAlreadyInProgress(existing.white_id, existing.black_id)
            if channel_id in self._pending:
                raise GameAlreadyInProgress
            self._pending.add(channel_id)

        engine: EngineBridge | None = None
        try:
            if engine_player_id is not None:
                engine = await self._start_engine()
            session = Session(
                channel_id,
                white_id,
                black_id,
                self.rules_factory(),
                engine=engine,
                engine_player_id=engine_player_id,
                move_time=self.move_time,
                max_autoplay_plies=self.max_autoplay_plies,
            )
        except BaseException:
            if engine is not None:
                await engine.close()
            async with self._lock:
                self._pending.discard(channel_id)
            raise

        async with self._lock:
            self._pending.discard(channel_id)
            self._sessions[channel_id] = session

        LOGGER.info("Started game in channel %s: %s vs %s.", channel_id, white_id, black_id)
        return session

    async def _start_engine(self) -> EngineBridge:
        if self.engine_factory is None:
            msg = "No engine is configured for this bot."
            raise EngineUnavailable(msg)

        engine = self.engine_factory()
        try:
            return await engine.start()
        except BaseException:
            await engine.close()
            raise

    async def get(self, channel_id: int) -> Session | None:
        """Get the game in a channel, if there is one."""

        async with self._lock:
            return self._sessions.get(channel_id)

    async def remove(self, channel_id: int) -> None:
        """Forget the game in a channel and shut down its engine. Does nothing if there's no game."""

        async with self._lock:
            session = self._sessions.pop(channel_id, None)

        if session is not None:
            await session.close()
            LOGGER.info("Removed game in channel %s.", channel_id)

    async def close(self) -> None:
        """Remove every game."""

        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            await session.close()
