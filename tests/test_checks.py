import asyncio
from types import SimpleNamespace
from unittest import mock

import discord
import pytest

from gambit.checks import can_cancel_games, in_chess_venue, permission_tokens
from gambit.errors import WrongVenue


def make_member(guild_id: int, *role_ids: int) -> mock.Mock:
    member = mock.Mock(spec=discord.Member)
    member.guild = SimpleNamespace(id=guild_id)
    member.roles = [SimpleNamespace(id=role_id) for role_id in role_ids]
    return member


def test_permission_tokens():
    assert permission_tokens(make_member(1, 2, 3)) == {"1:2", "1:3"}


def test_can_cancel_games():
    assert can_cancel_games(make_member(1, 2), ["1:2"])
    assert not can_cancel_games(make_member(1, 3), ["1:2"])
    # The same role id in another guild doesn't count.
    assert not can_cancel_games(make_member(5, 2), ["1:2"])
    assert not can_cancel_games(make_member(1, 2), [])


def test_users_outside_guilds_cannot_cancel():
    user = mock.Mock(spec=discord.User)
    assert not can_cancel_games(user, ["1:2"])


def run_venue_check(channel_name: str | None, room_match: str) -> bool:
    @in_chess_venue()
    async def command() -> None: ...

    (predicate,) = command.__commands_checks__
    config = SimpleNamespace(chess=SimpleNamespace(room_match=room_match))
    channel = SimpleNamespace(name=channel_name) if channel_name is not None else SimpleNamespace()
    ctx = SimpleNamespace(bot=SimpleNamespace(config=config), channel=channel)
    return asyncio.run(predicate(ctx))


def test_venue_matches_channel_name():
    assert run_venue_check("chess-club", "chess")
    assert run_venue_check("anything", "")


@pytest.mark.parametrize(("channel_name", "room_match"), [("general", "chess"), (None, "")])
def test_wrong_venue(channel_name: str | None, room_match: str):
    with pytest.raises(WrongVenue):
        run_venue_check(channel_name, room_match)
