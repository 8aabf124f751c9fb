"""Embed-related helpers, e.g. a class for summing up a finished game."""

import logging
from typing import Self

import discord

from ..chess import GameResult, Outcome


LOGGER = logging.getLogger(__name__)


__all__ = ("GameOverEmbed",)


class GameOverEmbed(discord.Embed):
    """A subclass of `discord.Embed` that summarizes a finished game, with a default colour of 0x5DC9E2 and a default
    timestamp of now in UTC.

    Parameters
    ----------
    *args
        Positional arguments for the normal initialization of a discord `Embed`.
    **kwargs
        Keyword arguments for the normal initialization of a discord `Embed`.
    """

    def __init__(self, *args: object, **kwargs: object) -> None:
        kwargs["colour"] = kwargs.get("colour") or kwargs.get("color") or 0x5DC9E2
        kwargs["timestamp"] = kwargs.get("timestamp", discord.utils.utcnow())
        kwargs.setdefault("title", "Game over")
        super().__init__(*args, **kwargs)

    @classmethod
    def from_result(cls, result: GameResult, *, winner_avatar: str | None = None) -> Self:
        """Build the summary for a game result.

        Parameters
        ----------
        result: GameResult
            How the game ended.
        winner_avatar: str, optional
            The url of the winner's avatar, shown as the thumbnail.
        """

        embed = cls(description=result.method)
        if winner_avatar:
            embed.set_thumbnail(url=winner_avatar)

        match result.outcome:
            case Outcome.WHITE_WON:
                statuses = (("Win", "\N{PARTY POPPER}"), ("Lose", "\N{THUMBS DOWN SIGN}"))
            case Outcome.BLACK_WON:
                statuses = (("Lose", "\N{THUMBS DOWN SIGN}"), ("Win", "\N{PARTY POPPER}"))
            case _:
                statuses = (("Draw", ""), ("Draw", ""))

        for (status, emoji), player_id in zip(statuses, (result.white_id, result.black_id), strict=True):
            embed.add_field(name=status, value=f"{emoji} <@{player_id}>".strip(), inline=True)

        movetext = result.movetext
        if len(movetext) > 1024:
            movetext = "\N{HORIZONTAL ELLIPSIS}" + movetext[-1023:]
        return embed.add_field(name="Game:", value=movetext or "-", inline=False)
