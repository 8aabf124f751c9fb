import pathlib

import msgspec
import pytest

from gambit.config import Config, decode, load_config


def test_minimal_config_uses_defaults():
    config = decode('[discord]\ntoken = "abc"\n')
    assert isinstance(config, Config)
    assert config.discord.token == "abc"
    assert config.discord.default_prefix == "!"
    assert config.chess.room_match == ""
    assert config.chess.admin_roles == []
    assert config.chess.max_autoplay_plies == 1200
    assert config.chess.engine.command == ["stockfish"]
    assert config.chess.engine.move_time == 0.1
    assert config.chess.render.size == 512


def test_full_config():
    config = decode(
        """
        [discord]
        token = "abc"
        default_prefix = "?"

        [chess]
        room_match = "^chess"
        admin_roles = ["1:2"]
        max_autoplay_plies = 50

        [chess.engine]
        command = ["/usr/games/stockfish", "--quiet"]
        move_time = 0.5
        options = { Threads = "2" }

        [chess.render]
        size = 400
        """
    )
    assert config.discord.default_prefix == "?"
    assert config.chess.admin_roles == ["1:2"]
    assert config.chess.max_autoplay_plies == 50
    assert config.chess.engine.command == ["/usr/games/stockfish", "--quiet"]
    assert config.chess.engine.options == {"Threads": "2"}
    assert config.chess.engine.handshake_timeout == 10.0
    assert config.chess.render.size == 400


def test_token_is_required():
    with pytest.raises(msgspec.ValidationError):
        decode("[discord]\n")


def test_load_config(tmp_path: pathlib.Path):
    path = tmp_path / "config.toml"
    path.write_text('[discord]\ntoken = "abc"\n[chess]\nroom_match = "chess"\n', encoding="utf-8")
    assert load_config(path).chess.room_match == "chess"


def test_example_config_is_valid():
    example = pathlib.Path(__file__).parents[1] / "config.example.toml"
    config = load_config(example)
    assert config.chess.engine.options == {"Threads": "1"}
