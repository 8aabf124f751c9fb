"""Custom errors used by the bot."""

from collections.abc import Mapping, Sequence

from discord.ext import commands


__all__ = (
    "GameError",
    "NoActiveGame",
    "GameAlreadyInProgress",
    "NotYourTurn",
    "NotAParticipant",
    "IllegalMove",
    "WrongVenue",
    "InsufficientPermission",
    "EngineUnavailable",
    "EngineTimeout",
    "RenderFailure",
    "AutoPlayLimitExceeded",
    "format_valid_moves",
)


class GameError(commands.CommandError):
    """Base exception for every user-facing chess error.

    An empty message means the user should only see a rejection marker on their message.

    This inherits from commands.CommandError.
    """


class NoActiveGame(GameError):
    """Exception raised when a command targets a channel without a game, or a game that has already finished.

    This inherits from GameError.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No game in progress.")


class GameAlreadyInProgress(GameError):
    """Exception raised when a game is started in a channel that already has one.

    This inherits from GameError.

    Attributes
    ----------
    white_id: int | None
        The white player of the game in progress, if known.
    black_id: int | None
        The black player of the game in progress, if known.
    """

    def __init__(self, white_id: int | None = None, black_id: int | None = None) -> None:
        self.white_id = white_id
        self.black_id = black_id
        if white_id is not None and black_id is not None:
            message = f"Game in progress: <@{white_id}> vs <@{black_id}>."
        else:
            message = "A game is already being set up in this channel."
        super().__init__(message)


class NotYourTurn(GameError):
    """Exception raised when someone other than the side to move tries to act.

    This inherits from GameError.
    """

    def __init__(self) -> None:
        super().__init__("")


class NotAParticipant(GameError):
    """Exception raised when someone who isn't playing tries to act on a game.

    This inherits from GameError.
    """

    def __init__(self) -> None:
        super().__init__("")


class IllegalMove(GameError):
    """Exception raised when a move can't be parsed or isn't legal in the current position.

    This inherits from GameError.

    Attributes
    ----------
    move_text: str
        What the player tried to play.
    valid_moves: Mapping[str, Sequence[str]]
        The legal moves, grouped by the piece that makes them.
    """

    def __init__(self, move_text: str, valid_moves: Mapping[str, Sequence[str]]) -> None:
        self.move_text = move_text
        self.valid_moves = valid_moves
        super().__init__(f"Invalid move `{move_text}`.\nAvailable:{format_valid_moves(valid_moves)}")


class WrongVenue(GameError):
    """Exception raised when a game is started in a channel that isn't meant for chess.

    This inherits from GameError.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Wrong room. Games can only be started in chess channels.")


class InsufficientPermission(GameError):
    """Exception raised when someone without the configured roles tries to cancel a game.

    This inherits from GameError.
    """

    def __init__(self) -> None:
        super().__init__("")


class EngineUnavailable(GameError):
    """Exception raised when the engine process can't be started or stops responding properly.

    This inherits from GameError.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "The automated opponent is temporarily unavailable.")


class EngineTimeout(EngineUnavailable):
    """Exception raised when the engine doesn't answer within its time budget.

    This inherits from EngineUnavailable.
    """


class RenderFailure(Exception):
    """Exception raised when a board image can't be produced. Always recovered from with a text board."""


class AutoPlayLimitExceeded(RuntimeError):
    """Exception raised when the engine keeps moving past the per-invocation ply limit."""


def format_valid_moves(valid_moves: Mapping[str, Sequence[str]]) -> str:
    """Format grouped legal moves as a code block, one line per piece."""

    lines = (f"{piece} - {' '.join(moves)}" for piece, moves in valid_moves.items())
    return "\n```\n" + "\n".join(lines) + "\n```"
