"""A single chess game bound to a channel, and the rules for who may do what to it."""

import asyncio
import datetime
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

import msgspec

from ..errors import (
    AutoPlayLimitExceeded,
    EngineUnavailable,
    IllegalMove,
    InsufficientPermission,
    NoActiveGame,
    NotAParticipant,
    NotYourTurn,
)
from .rules import Outcome, RulesEngine, Side


LOGGER = logging.getLogger(__name__)

__all__ = ("SessionState", "DrawOffer", "GameResult", "MoveSource", "Session", "MAX_AUTOPLAY_PLIES")

# Twice the length of a realistic long game, in engine moves per call to `Session.advance`.
MAX_AUTOPLAY_PLIES = 1200

EngineMoveCallback: TypeAlias = Callable[["Session"], Awaitable[object]]


class SessionState(enum.Enum):
    AWAITING_MOVE = enum.auto()
    AWAITING_ENGINE_MOVE = enum.auto()
    FINISHED = enum.auto()


class DrawOffer(enum.Flag):
    """Which sides have offered (or accepted) a draw since the last move."""

    NONE = 0
    WHITE = enum.auto()
    BLACK = enum.auto()
    BOTH = WHITE | BLACK


class GameResult(msgspec.Struct, frozen=True):
    """Record-like structure that describes how a game ended.

    Attributes
    ----------
    outcome: Outcome
        Who won, or whether it was a draw.
    method: str
        Why the game ended, e.g. "Checkmate".
    white_id: int
        The white player.
    black_id: int
        The black player.
    winner_id: int | None
        The winning player, or None for a draw.
    movetext: str
        The moves of the game in PGN.
    """

    outcome: Outcome
    method: str
    white_id: int
    black_id: int
    winner_id: int | None
    movetext: str


class MoveSource(Protocol):
    """Anything that can pick a move for a position, like an `EngineBridge`."""

    async def best_move(self, fen: str, time_budget: float) -> str: ...

    async def close(self) -> None: ...


class Session:
    """One game in one channel.

    The position, turn and outcome always come from the session's own rules engine. The session never removes itself
    from a registry; callers check `is_finished` (or the return of `advance`) and tear it down.

    Parameters
    ----------
    channel_id: int
        The channel the game is played in.
    white_id: int
        The player with the white pieces.
    black_id: int
        The player with the black pieces.
    rules: RulesEngine
        The game's rules engine, owned by this session alone.
    engine: MoveSource, optional
        The engine that plays for `engine_player_id`.
    engine_player_id: int, optional
        The participant the engine moves for. Required if an engine is given.
    move_time: float, default=0.1
        How long the engine may think per move, in seconds.
    max_autoplay_plies: int, default=MAX_AUTOPLAY_PLIES
        The most engine moves a single call to `advance` may make.

    Attributes
    ----------
    created_at: datetime.datetime
        When the game started, in UTC.
    last_activity_at: datetime.datetime
        When the last move was made, in UTC.
    draw_offer: DrawOffer
        The sides currently offering a draw.
    lock: asyncio.Lock
        Held by callers while handling a command for this session, so engine turns and human commands don't overlap.
    """

    def __init__(
        self,
        channel_id: int,
        white_id: int,
        black_id: int,
        rules: RulesEngine,
        *,
        engine: MoveSource | None = None,
        engine_player_id: int | None = None,
        move_time: float = 0.1,
        max_autoplay_plies: int = MAX_AUTOPLAY_PLIES,
    ) -> None:
        if (engine is None) != (engine_player_id is None):
            msg = "An engine and the player it moves for must be given together."
            raise ValueError(msg)
        if engine_player_id is not None and engine_player_id not in (white_id, black_id):
            msg = "The engine has to play for one of the participants."
            raise ValueError(msg)

        self.channel_id = channel_id
        self.white_id = white_id
        self.black_id = black_id
        self.rules = rules
        self.engine = engine
        self.engine_player_id = engine_player_id
        self.move_time = move_time
        self.max_autoplay_plies = max_autoplay_plies

        self.created_at = self.last_activity_at = datetime.datetime.now(datetime.UTC)
        self.draw_offer = DrawOffer.NONE
        self.lock = asyncio.Lock()
        self._state = SessionState.AWAITING_MOVE

    def __repr__(self) -> str:
        return (
            f"<Session channel_id={self.channel_id} white_id={self.white_id} black_id={self.black_id} "
            f"state={self._state.name} ply={self.ply}>"
        )

    # region -------- Read-only views

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_finished(self) -> bool:
        return self._state is SessionState.FINISHED

    @property
    def ply(self) -> int:
        return self.rules.ply()

    @property
    def turn(self) -> Side:
        return self.rules.turn()

    @property
    def turn_id(self) -> int:
        """`int`: The participant whose move it is."""

        return self.player(self.turn)

    @property
    def engine_to_move(self) -> bool:
        return self.engine is not None and self.turn_id == self.engine_player_id

    @property
    def result(self) -> GameResult | None:
        """`GameResult | None`: How the game ended, if it has."""

        if not self.is_finished:
            return None

        outcome = self.rules.outcome()
        assert outcome  # A finished session always has an outcome.
        winner = outcome.winner
        return GameResult(
            outcome=outcome,
            method=self.rules.method(),
            white_id=self.white_id,
            black_id=self.black_id,
            winner_id=self.player(winner) if winner else None,
            movetext=self.rules.movetext(),
        )

    def player(self, side: Side) -> int:
        return self.white_id if side is Side.WHITE else self.black_id

    def sides_of(self, user_id: int) -> DrawOffer:
        """Get the sides a user plays, as flags. A user may play both sides against themself."""

        sides = DrawOffer.NONE
        if user_id == self.white_id:
            sides |= DrawOffer.WHITE
        if user_id == self.black_id:
            sides |= DrawOffer.BLACK
        return sides

    def valid_moves(self) -> dict[str, list[str]]:
        """Get the legal moves grouped by the piece that makes them, in board order."""

        grouped: dict[str, list[str]] = {}
        for legal_move in self.rules.legal_moves():
            grouped.setdefault(legal_move.piece, []).append(legal_move.notation)
        return grouped

    # endregion

    # region -------- Transitions

    def _ensure_active(self) -> None:
        if self.is_finished:
            raise NoActiveGame

    def _record_move(self) -> None:
        self.draw_offer = DrawOffer.NONE
        self.last_activity_at = datetime.datetime.now(datetime.UTC)

    def _finish(self) -> None:
        self._state = SessionState.FINISHED
        LOGGER.info(
            "Game in channel %s finished: %s (%s).",
            self.channel_id,
            self.rules.outcome(),
            self.rules.method(),
        )

    def move(self, actor_id: int, text: str) -> str:
        """Play a move for the side to move.

        Parameters
        ----------
        actor_id: int
            Who is trying to move.
        text: str
            The move in algebraic notation.

        Returns
        -------
        str
            The move as it was applied, in SAN.

        Raises
        ------
        NoActiveGame
            The game is already over.
        NotYourTurn
            The actor isn't the side to move, or the engine is thinking.
        IllegalMove
            The move couldn't be understood or isn't legal. Nothing changes.
        """

        self._ensure_active()
        if self._state is SessionState.AWAITING_ENGINE_MOVE or actor_id != self.turn_id:
            raise NotYourTurn

        try:
            san = self.rules.apply_move(text)
        except ValueError:
            raise IllegalMove(text, self.valid_moves()) from None

        self._record_move()
        return san

    def offer_draw(self, actor_id: int) -> bool:
        """Offer a draw, or accept one that's already been offered.

        Returns
        -------
        bool
            Whether the game is now drawn. False means the offer is waiting on the other player.

        Raises
        ------
        NoActiveGame
            The game is already over.
        NotAParticipant
            The actor isn't playing in this game.
        """

        self._ensure_active()
        sides = self.sides_of(actor_id)
        if not sides:
            raise NotAParticipant

        self.draw_offer |= sides
        if self.draw_offer != DrawOffer.BOTH:
            return False

        self.rules.offer_draw()
        self._finish()
        return True

    def resign(self, actor_id: int) -> None:
        """Resign the game for the side to move, crediting the other side with the win."""

        self._ensure_active()
        if self._state is SessionState.AWAITING_ENGINE_MOVE or actor_id != self.turn_id:
            raise NotYourTurn

        self.rules.resign(self.turn)
        self._finish()

    def cancel(self, actor_id: int, has_privilege: bool) -> None:
        """End the game as a draw without a result, for moderators.

        Raises
        ------
        NoActiveGame
            The game is already over.
        InsufficientPermission
            The actor isn't allowed to cancel games.
        """

        self._ensure_active()
        if not has_privilege:
            raise InsufficientPermission

        LOGGER.info("Game in channel %s cancelled by %s.", self.channel_id, actor_id)
        self.rules.cancel()
        self._finish()

    async def advance(self, *, on_engine_move: EngineMoveCallback | None = None) -> GameResult | None:
        """Settle the game after a transition: finish it if it's over, and let the engine move while it's on turn.

        Parameters
        ----------
        on_engine_move: Callable[[Session], Awaitable[object]], optional
            Called after every move the engine makes.

        Returns
        -------
        GameResult | None
            The result if the game is over, otherwise None, with a human to move.

        Raises
        ------
        EngineUnavailable
            The engine failed or timed out. The game stays open with the engine to move.
        AutoPlayLimitExceeded
            The engine made too many moves in a row.
        """

        engine_moves = 0
        while True:
            if self.is_finished:
                return self.result
            if self.rules.outcome() is not None:
                self._finish()
                return self.result
            if not self.engine_to_move:
                return None

            if engine_moves >= self.max_autoplay_plies:
                msg = f"Engine made {engine_moves} moves in a row in channel {self.channel_id}."
                raise AutoPlayLimitExceeded(msg)

            await self._play_engine_move()
            engine_moves += 1
            if on_engine_move is not None:
                await on_engine_move(self)

    async def _play_engine_move(self) -> None:
        assert self.engine

        self._state = SessionState.AWAITING_ENGINE_MOVE
        try:
            uci = await self.engine.best_move(self.rules.fen(), self.move_time)
        finally:
            self._state = SessionState.AWAITING_MOVE

        try:
            san = self.rules.apply_uci(uci)
        except ValueError as err:
            LOGGER.warning("Engine suggested an illegal move %r in channel %s.", uci, self.channel_id)
            raise EngineUnavailable from err

        self._record_move()
        LOGGER.debug("Engine played %s in channel %s.", san, self.channel_id)

    # endregion

    async def close(self) -> None:
        """Release the session's engine, if it has one."""

        if self.engine is not None:
            await self.engine.close()
