"""Custom checks used by the bot."""

import re
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands

from .errors import WrongVenue


if TYPE_CHECKING:
    from discord.ext.commands._types import Check  # type: ignore [reportMissingTypeStubs]

    from .bot import Context


__all__ = ("in_chess_venue", "permission_tokens", "can_cancel_games")


def in_chess_venue() -> "Check[Any]":
    """A `.check` that checks if the command is being invoked in a channel whose name matches the configured pattern.

    This check raises a special exception, `WrongVenue` that is derived from `commands.CommandError`.
    """

    async def predicate(ctx: "Context") -> bool:
        channel_name: str | None = getattr(ctx.channel, "name", None)
        if channel_name is None or not re.search(ctx.bot.config.chess.room_match, channel_name):
            raise WrongVenue
        return True

    return commands.check(predicate)


def permission_tokens(member: discord.Member) -> set[str]:
    """Get the opaque "<guild id>:<role id>" tokens for every role a member has."""

    return {f"{member.guild.id}:{role.id}" for role in member.roles}


def can_cancel_games(member: discord.Member | discord.User, allowed: Collection[str]) -> bool:
    """Whether a user holds any of the permission tokens allowed to cancel games.

    Users outside of a guild hold no tokens.
    """

    if not isinstance(member, discord.Member):
        return False
    return not permission_tokens(member).isdisjoint(allowed)
