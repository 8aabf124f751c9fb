"""The rules engine interface a game session relies on, and its python-chess implementation.

Everything about legality, notation and outcomes lives behind `RulesEngine`; sessions never touch a `chess.Board`
directly, so the implementation can be swapped out or faked in tests.
"""

import enum
import logging
from typing import NamedTuple, Protocol

import chess
import chess.pgn

from .openings import find_opening


LOGGER = logging.getLogger(__name__)

__all__ = ("Side", "Outcome", "LegalMove", "Frame", "RulesEngine", "ChessRules")


class Side(enum.Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def other(self) -> "Side":
        return Side.BLACK if self is Side.WHITE else Side.WHITE


class Outcome(enum.Enum):
    WHITE_WON = "1-0"
    BLACK_WON = "0-1"
    DRAW = "1/2-1/2"

    @property
    def winner(self) -> Side | None:
        """`Side | None`: The side that won, or None for a draw."""

        if self is Outcome.WHITE_WON:
            return Side.WHITE
        if self is Outcome.BLACK_WON:
            return Side.BLACK
        return None


class LegalMove(NamedTuple):
    """One legal move in the current position.

    Attributes
    ----------
    piece: str
        The symbol of the moving piece.
    square: str
        The square the piece moves from, e.g. "g1".
    notation: str
        The move in standard algebraic notation.
    """

    piece: str
    square: str
    notation: str


class Frame(NamedTuple):
    """A position in a game's history, with the squares of the move that produced it."""

    board_fen: str
    highlights: tuple[str, ...] = ()


class RulesEngine(Protocol):
    """Everything a session needs to know about the game being played."""

    def apply_move(self, text: str) -> str:
        """Apply a move given in algebraic notation and return its SAN. Raises `ValueError` if it isn't legal."""
        ...

    def apply_uci(self, uci: str) -> str:
        """Apply a move given in UCI notation and return its SAN. Raises `ValueError` if it isn't legal."""
        ...

    def legal_moves(self) -> list[LegalMove]: ...

    def fen(self) -> str: ...

    def board_fen(self) -> str: ...

    def board_text(self) -> str: ...

    def turn(self) -> Side: ...

    def ply(self) -> int: ...

    def outcome(self) -> Outcome | None: ...

    def method(self) -> str: ...

    def offer_draw(self) -> None: ...

    def cancel(self) -> None: ...

    def resign(self, side: Side) -> None: ...

    def last_move(self) -> tuple[str, str] | None: ...

    def frames(self) -> list[Frame]: ...

    def opening(self) -> str | None: ...

    def movetext(self) -> str: ...


_TERMINATION_METHODS = {
    chess.Termination.CHECKMATE: "Checkmate",
    chess.Termination.STALEMATE: "Stalemate",
    chess.Termination.INSUFFICIENT_MATERIAL: "Insufficient material",
    chess.Termination.SEVENTYFIVE_MOVES: "Seventy-five-move rule",
    chess.Termination.FIVEFOLD_REPETITION: "Fivefold repetition",
    chess.Termination.FIFTY_MOVES: "Fifty-move rule",
    chess.Termination.THREEFOLD_REPETITION: "Threefold repetition",
}


class ChessRules:
    """A standard chess game backed by a `chess.Board`.

    Outcomes that the board can't know about by itself, i.e. resignations, agreed draws and cancellations, are
    recorded alongside it.

    Parameters
    ----------
    fen: str, optional
        A starting position. Defaults to the standard one.
    """

    def __init__(self, fen: str = chess.STARTING_FEN) -> None:
        self._board = chess.Board(fen)
        self._sans: list[str] = []
        self._declared: tuple[Outcome, str] | None = None

    def __repr__(self) -> str:
        return f"<ChessRules fen={self._board.fen()!r} declared={self._declared!r}>"

    def apply_move(self, text: str) -> str:
        try:
            move = self._board.parse_san(text)
        except ValueError:
            # Fall back to coordinate notation, e.g. "e2e4".
            move = self._board.parse_uci(text.lower())
        return self._push(move)

    def apply_uci(self, uci: str) -> str:
        return self._push(self._board.parse_uci(uci))

    def _push(self, move: chess.Move) -> str:
        # The parsers let null moves ("--", "0000") through without a legality check.
        if not move or move not in self._board.legal_moves:
            msg = f"Illegal move {move.uci()!r} in {self._board.fen()!r}."
            raise ValueError(msg)
        san = self._board.san(move)
        self._board.push(move)
        self._sans.append(san)
        return san

    def legal_moves(self) -> list[LegalMove]:
        moves: list[LegalMove] = []
        for move in sorted(self._board.legal_moves, key=lambda m: (m.from_square, m.to_square, m.promotion or 0)):
            piece = self._board.piece_at(move.from_square)
            assert piece  # A legal move always starts on an occupied square.
            moves.append(LegalMove(piece.unicode_symbol(), chess.square_name(move.from_square), self._board.san(move)))
        return moves

    def fen(self) -> str:
        return self._board.fen()

    def board_fen(self) -> str:
        return self._board.board_fen()

    def board_text(self) -> str:
        return str(self._board)

    def turn(self) -> Side:
        return Side.WHITE if self._board.turn == chess.WHITE else Side.BLACK

    def ply(self) -> int:
        return self._board.ply()

    def outcome(self) -> Outcome | None:
        if self._declared:
            return self._declared[0]

        board_outcome = self._board.outcome()
        if board_outcome is None:
            return None
        if board_outcome.winner is None:
            return Outcome.DRAW
        return Outcome.WHITE_WON if board_outcome.winner == chess.WHITE else Outcome.BLACK_WON

    def method(self) -> str:
        if self._declared:
            return self._declared[1]

        board_outcome = self._board.outcome()
        if board_outcome is None:
            return ""
        return _TERMINATION_METHODS.get(board_outcome.termination, board_outcome.termination.name.capitalize())

    def offer_draw(self) -> None:
        self._declared = (Outcome.DRAW, "Draw by agreement")

    def cancel(self) -> None:
        self._declared = (Outcome.DRAW, "Cancelled")

    def resign(self, side: Side) -> None:
        outcome = Outcome.BLACK_WON if side is Side.WHITE else Outcome.WHITE_WON
        self._declared = (outcome, f"{side.value.capitalize()} resigned")

    def last_move(self) -> tuple[str, str] | None:
        if not self._board.move_stack:
            return None
        move = self._board.peek()
        return chess.square_name(move.from_square), chess.square_name(move.to_square)

    def frames(self) -> list[Frame]:
        replay = self._board.root()
        frames = [Frame(replay.board_fen())]
        for move in self._board.move_stack:
            replay.push(move)
            squares = (chess.square_name(move.from_square), chess.square_name(move.to_square))
            frames.append(Frame(replay.board_fen(), squares))
        return frames

    def opening(self) -> str | None:
        return find_opening(self._sans)

    def movetext(self) -> str:
        """Return the game so far as PGN movetext, ending with the result."""

        game = chess.pgn.Game.from_board(self._board)
        outcome = self.outcome()
        game.headers["Result"] = outcome.value if outcome else "*"
        exporter = chess.pgn.StringExporter(headers=False, variations=False, comments=False)
        return game.accept(exporter)
