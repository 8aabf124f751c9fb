"""The main bot code."""

import asyncio
import logging
import sys
import traceback
from pathlib import Path
from typing import Any

import discord
from discord.ext import commands

from .config import Config, load_config
from .exts import EXTENSIONS
from .utils import LoggingManager, catchtime


LOGGER = logging.getLogger(__name__)


__all__ = ("Context", "GuildContext", "Gambit", "main")


class Context(commands.Context["Gambit"]):
    """A custom context subclass for Gambit.

    Attributes
    ----------
    error_handled: bool, default=False
        Whether a cog's error handler has already replied to an error, so the bot-wide handler should stay quiet.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.error_handled: bool = False


class GuildContext(Context):
    author: discord.Member  # type: ignore # Type lie for narrowing
    guild: discord.Guild  # type: ignore # Type lie for narrowing
    channel: discord.TextChannel | discord.Thread  # type: ignore # Type lie for narrowing
    me: discord.Member  # type: ignore # Type lie for narrowing


class Gambit(commands.Bot):
    """A Discord bot that referees chess games in channels, and plays in them with a UCI engine if asked.

    Parameters
    ----------
    *args
        Variable length argument list, primarily for `commands.Bot`.
    config: `Config`
        The bot's settings, including how to run the engine.
    logging_manager: `LoggingManager`
        The logging setup the bot is running under.
    initial_extensions: list[`str`], optional
        The extensions to load on startup. Defaults to everything in `gambit.exts`.
    **kwargs
        Arbitrary keyword arguments, primarily for `commands.Bot`. See that class for more information.
    """

    def __init__(
        self,
        *args: Any,
        config: Config,
        logging_manager: LoggingManager,
        initial_extensions: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.config = config
        self.logging_manager = logging_manager
        self.initial_extensions: list[str] = initial_extensions or list(EXTENSIONS)

    async def on_ready(self) -> None:
        assert self.user
        LOGGER.info("Logged in as %s (ID: %s), refereeing in %s guilds.", self.user, self.user.id, len(self.guilds))

    async def setup_hook(self) -> None:
        LOGGER.info("Engine command: %s", " ".join(self.config.chess.engine.command))

        with catchtime("Loaded all extensions", LOGGER):
            for extension in self.initial_extensions:
                try:
                    with catchtime() as ext_time:
                        await self.load_extension(extension)
                except commands.ExtensionError as err:
                    LOGGER.exception("Failed to load extension: %s", extension, exc_info=err)
                else:
                    LOGGER.info("Loaded extension: %s -- Time: %.5f", extension, ext_time.elapsed)

    async def get_context(
        self,
        origin: discord.Message | discord.Interaction,
        /,
        *,
        cls: type[commands.Context[Any]] = Context,
    ) -> Any:
        return await super().get_context(origin, cls=cls)

    async def on_error(self, event_method: str, /, *args: object, **kwargs: object) -> None:
        exception = sys.exc_info()[1]
        LOGGER.error("Exception in event %s (args: %r, kwargs: %r)", event_method, args, kwargs, exc_info=exception)

    async def on_command_error(self, context: Context, exception: commands.CommandError) -> None:  # type: ignore # Narrowing
        if context.error_handled or isinstance(exception, commands.CommandNotFound):
            return

        exception = getattr(exception, "original", exception)

        # Failed checks and bad input are the user's problem, not the bot's.
        if isinstance(exception, commands.CheckFailure | commands.UserInputError):
            LOGGER.info("Rejected command %s from %s: %s", context.command, context.author, exception)
            return

        tb_text = "".join(traceback.format_exception(exception, chain=False))
        LOGGER.error(
            "Exception in command %s (author: %s, guild: %s, channel: %s)\n%s",
            context.command,
            context.author,
            context.guild.name if context.guild else "-----",
            context.channel,
            tb_text,
        )


async def main(config_path: str | Path = "config.toml") -> None:
    """Load the settings, set up logging and run the bot until it's closed."""

    config = load_config(config_path)

    async with LoggingManager() as logging_manager:
        # Prefix commands need to read message content.
        intents = discord.Intents.default()
        intents.message_content = True

        async with Gambit(
            commands.when_mentioned_or(config.discord.default_prefix),
            config=config,
            logging_manager=logging_manager,
            intents=intents,
        ) as bot:
            await bot.start(config.discord.token)

    await asyncio.sleep(0.1)
