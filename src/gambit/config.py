"""For loading configuration information, such as the bot token, the default prefix, and chess settings."""

import pathlib

import msgspec


__all__ = ("Config", "ChessConfig", "EngineConfig", "RenderConfig", "load_config")


class DiscordConfig(msgspec.Struct):
    token: str
    default_prefix: str = "!"


class EngineConfig(msgspec.Struct):
    """How to launch and drive the UCI engine the bot plays with.

    Attributes
    ----------
    command: list[str]
        The engine executable and its arguments.
    move_time: float, default=0.1
        Thinking time per engine move, in seconds.
    handshake_timeout: float, default=10.0
        How long the engine has to finish the initial handshake, in seconds.
    search_grace: float, default=0.5
        Extra time allowed on top of `move_time` for the reply to arrive.
    options: dict[str, str]
        UCI options sent with `setoption` during the handshake.
    """

    command: list[str] = msgspec.field(default_factory=lambda: ["stockfish"])
    move_time: float = 0.1
    handshake_timeout: float = 10.0
    search_grace: float = 0.5
    options: dict[str, str] = msgspec.field(default_factory=dict)


class RenderConfig(msgspec.Struct):
    size: int = 512
    font_path: str = ""


class ChessConfig(msgspec.Struct):
    room_match: str = ""
    admin_roles: list[str] = msgspec.field(default_factory=list)
    max_autoplay_plies: int = 1200
    engine: EngineConfig = msgspec.field(default_factory=EngineConfig)
    render: RenderConfig = msgspec.field(default_factory=RenderConfig)


class Config(msgspec.Struct):
    discord: DiscordConfig
    chess: ChessConfig = msgspec.field(default_factory=ChessConfig)


def decode(data: bytes | str) -> Config:
    """Decode a TOML file with the Config schema."""

    return msgspec.toml.decode(data, type=Config)


def load_config(path: str | pathlib.Path = "config.toml") -> Config:
    """Load the contents of a "config.toml" file into a Config struct."""

    return decode(pathlib.Path(path).read_text(encoding="utf-8"))
