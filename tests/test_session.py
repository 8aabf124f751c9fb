import asyncio

import chess
import pytest

from gambit.chess import ChessRules, DrawOffer, Outcome, Session, SessionState, Side
from gambit.errors import (
    AutoPlayLimitExceeded,
    EngineTimeout,
    EngineUnavailable,
    IllegalMove,
    InsufficientPermission,
    NoActiveGame,
    NotAParticipant,
    NotYourTurn,
)


WHITE, BLACK, BOT, STRANGER = 1, 2, 99, 3


class ScriptedEngine:
    """Plays the first legal move, or raises what it's told to."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.searches = 0
        self.closed = 0

    async def best_move(self, fen: str, time_budget: float) -> str:
        self.searches += 1
        if self.error is not None:
            raise self.error
        return min(move.uci() for move in chess.Board(fen).legal_moves)

    async def close(self) -> None:
        self.closed += 1


def make_session(**kwargs: object) -> Session:
    return Session(100, kwargs.pop("white_id", WHITE), kwargs.pop("black_id", BLACK), ChessRules(), **kwargs)  # type: ignore


def test_turns_alternate():
    session = make_session()
    assert session.turn_id == WHITE
    assert session.move(WHITE, "e4") == "e4"
    assert session.turn_id == BLACK
    assert session.ply == 1

    with pytest.raises(NotYourTurn):
        session.move(WHITE, "d4")
    with pytest.raises(NotYourTurn):
        session.move(STRANGER, "e5")


def test_illegal_move_lists_the_valid_ones():
    session = make_session()
    with pytest.raises(IllegalMove) as excinfo:
        session.move(WHITE, "e5")

    assert excinfo.value.move_text == "e5"
    assert excinfo.value.valid_moves == session.valid_moves()
    assert "Invalid move `e5`." in str(excinfo.value)
    assert session.ply == 0
    assert session.turn_id == WHITE


@pytest.mark.parametrize("text", ["--", "0000"])
def test_null_move_does_not_pass_the_turn(text: str):
    session = make_session()
    session.offer_draw(BLACK)
    with pytest.raises(IllegalMove):
        session.move(WHITE, text)

    assert session.ply == 0
    assert session.turn_id == WHITE
    assert session.draw_offer is DrawOffer.BLACK


def test_valid_moves_are_grouped_by_piece():
    valid = make_session().valid_moves()
    assert valid["♘"] == ["Na3", "Nc3", "Nf3", "Nh3"]
    assert len(valid["♙"]) == 16


def test_draw_needs_both_sides():
    session = make_session()
    assert session.offer_draw(WHITE) is False
    assert session.draw_offer is DrawOffer.WHITE
    assert session.offer_draw(WHITE) is False
    assert not session.is_finished

    assert session.offer_draw(BLACK) is True
    assert session.is_finished
    result = session.result
    assert result is not None
    assert result.outcome is Outcome.DRAW
    assert result.method == "Draw by agreement"
    assert result.winner_id is None


def test_a_move_withdraws_draw_offers():
    session = make_session()
    session.offer_draw(BLACK)
    session.move(WHITE, "e4")
    assert session.draw_offer is DrawOffer.NONE
    assert session.offer_draw(WHITE) is False


def test_draw_offer_from_a_stranger():
    session = make_session()
    with pytest.raises(NotAParticipant):
        session.offer_draw(STRANGER)
    assert session.draw_offer is DrawOffer.NONE


def test_self_play_draw_is_immediate():
    session = make_session(white_id=WHITE, black_id=WHITE)
    assert session.offer_draw(WHITE) is True
    assert session.is_finished


def test_resign_only_on_your_turn():
    session = make_session()
    with pytest.raises(NotYourTurn):
        session.resign(BLACK)

    session.resign(WHITE)
    result = session.result
    assert result is not None
    assert result.outcome is Outcome.BLACK_WON
    assert result.winner_id == BLACK
    assert result.method == "White resigned"


def test_cancel_needs_privilege():
    session = make_session()
    with pytest.raises(InsufficientPermission):
        session.cancel(STRANGER, False)
    assert not session.is_finished

    session.cancel(STRANGER, True)
    result = session.result
    assert result is not None
    assert result.outcome is Outcome.DRAW
    assert result.method == "Cancelled"


def test_finished_session_rejects_everything():
    session = make_session()
    session.resign(WHITE)
    with pytest.raises(NoActiveGame):
        session.move(BLACK, "e5")
    with pytest.raises(NoActiveGame):
        session.offer_draw(BLACK)
    with pytest.raises(NoActiveGame):
        session.resign(BLACK)
    with pytest.raises(NoActiveGame):
        session.cancel(BLACK, True)


def test_checkmate_finishes_on_advance():
    session = make_session()
    for actor, move in ((WHITE, "f3"), (BLACK, "e5"), (WHITE, "g4"), (BLACK, "Qh4#")):
        session.move(actor, move)

    result = asyncio.run(session.advance())
    assert session.is_finished
    assert result is not None
    assert result.outcome is Outcome.BLACK_WON
    assert result.winner_id == BLACK
    assert result.method == "Checkmate"
    assert result.movetext.endswith("0-1")


def test_advance_without_engine_waits_for_a_human():
    session = make_session()
    assert asyncio.run(session.advance()) is None
    assert session.state is SessionState.AWAITING_MOVE


def test_engine_replies_after_a_human_move():
    engine = ScriptedEngine()
    session = make_session(black_id=BOT, engine=engine, engine_player_id=BOT)
    seen: list[int] = []

    async def on_engine_move(s: Session) -> None:
        seen.append(s.ply)

    session.move(WHITE, "e4")
    assert asyncio.run(session.advance(on_engine_move=on_engine_move)) is None
    assert engine.searches == 1
    assert seen == [2]
    assert session.turn_id == WHITE
    assert session.rules.last_move() == ("a7", "a5")


def test_engine_opens_as_white():
    engine = ScriptedEngine()
    session = make_session(white_id=BOT, engine=engine, engine_player_id=BOT)
    asyncio.run(session.advance())
    assert session.ply == 1
    assert session.turn is Side.BLACK


def test_engine_failure_keeps_the_game():
    engine = ScriptedEngine(EngineTimeout())
    session = make_session(black_id=BOT, engine=engine, engine_player_id=BOT)
    session.move(WHITE, "e4")

    with pytest.raises(EngineUnavailable):
        asyncio.run(session.advance())
    assert not session.is_finished
    assert session.state is SessionState.AWAITING_MOVE
    assert session.engine_to_move

    # Nobody else may move for the engine.
    with pytest.raises(NotYourTurn):
        session.move(WHITE, "d4")

    engine.error = None
    assert asyncio.run(session.advance()) is None
    assert session.turn_id == WHITE


def test_illegal_engine_move():
    class Confused(ScriptedEngine):
        async def best_move(self, fen: str, time_budget: float) -> str:
            return "a1a8"

    session = make_session(white_id=BOT, engine=Confused(), engine_player_id=BOT)
    with pytest.raises(EngineUnavailable):
        asyncio.run(session.advance())
    assert session.ply == 0


def test_self_play_is_bounded():
    engine = ScriptedEngine()
    session = make_session(white_id=BOT, black_id=BOT, engine=engine, engine_player_id=BOT, max_autoplay_plies=6)
    with pytest.raises(AutoPlayLimitExceeded):
        asyncio.run(session.advance())
    assert engine.searches == 6
    assert session.ply == 6


def test_engine_and_player_go_together():
    with pytest.raises(ValueError):
        make_session(engine=ScriptedEngine())
    with pytest.raises(ValueError):
        make_session(engine_player_id=BOT)
    with pytest.raises(ValueError):
        make_session(engine=ScriptedEngine(), engine_player_id=STRANGER)


def test_close_releases_the_engine():
    engine = ScriptedEngine()
    session = make_session(black_id=BOT, engine=engine, engine_player_id=BOT)
    asyncio.run(session.close())
    assert engine.closed == 1
