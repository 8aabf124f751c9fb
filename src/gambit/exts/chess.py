"""A cog for playing chess in a channel, against another member or against the bot itself.

Notes
-----
Inspired by the DiscordGophers chess bot: https://github.com/DiscordGophers/discordchess
"""

import asyncio
import functools
import logging

import discord
from discord.ext import commands

import gambit
from gambit.chess import BoardRenderer, EngineBridge, GameResult, Session, SessionRegistry, text_board
from gambit.errors import (
    EngineUnavailable,
    GameError,
    NoActiveGame,
    NotYourTurn,
    RenderFailure,
    format_valid_moves,
)
from gambit.utils import GameOverEmbed


LOGGER = logging.getLogger(__name__)

ACCEPTED = "\N{WHITE HEAVY CHECK MARK}"
REJECTED = "\N{CROSS MARK}"
ENGINE_DOWN_MESSAGE = "The automated opponent is temporarily unavailable."


class ChessCog(commands.Cog, name="Chess"):
    """A cog for playing chess in a channel, one game per channel.

    Parameters
    ----------
    bot: `gambit.Gambit`
        The bot this cog belongs to.
    registry: `SessionRegistry`
        The games in progress.
    renderer: `BoardRenderer`
        Draws the boards that get posted.
    """

    def __init__(self, bot: gambit.Gambit, registry: SessionRegistry, renderer: BoardRenderer) -> None:
        self.bot = bot
        self.registry = registry
        self.renderer = renderer

    @property
    def cog_emoji(self) -> discord.PartialEmoji:
        """discord.PartialEmoji: A partial emoji representing this cog."""

        return discord.PartialEmoji(name="\N{BLACK CHESS PAWN}")

    async def cog_unload(self) -> None:
        await self.registry.close()

    async def cog_check(self, ctx: gambit.Context) -> bool:  # type: ignore # Narrowing
        if ctx.guild is None:
            raise commands.NoPrivateMessage
        return True

    async def cog_command_error(self, ctx: gambit.Context, error: Exception) -> None:  # type: ignore # Narrowing
        """Handles errors that occur within this cog.

        Game errors get a rejection marker on the offending message and, if they have one, a short explanation. Anything
        unexpected gets a generic reply and is left for the bot's error logging.

        Parameters
        ----------
        ctx: gambit.Context
            The invocation context where the error happened.
        error: Exception
            The error that happened.
        """

        assert ctx.command

        if ctx.error_handled:
            return

        # Extract the original error.
        error = getattr(error, "original", error)

        if isinstance(error, EngineUnavailable):
            LOGGER.warning("Engine problem in channel %s: %r", ctx.channel.id, error)
            await self._reject(ctx, ENGINE_DOWN_MESSAGE)
            ctx.error_handled = True
        elif isinstance(error, GameError):
            await self._reject(ctx, str(error))
            ctx.error_handled = True
        elif isinstance(error, commands.NoPrivateMessage):
            await ctx.send("Chess can only be played in a server.")
            ctx.error_handled = True
        elif isinstance(error, commands.UserInputError):
            if ctx.command.name == "play":
                usage = f"Start a game with `{ctx.clean_prefix}play @player1 @player2`."
            else:
                usage = f"Usage: `{ctx.clean_prefix}{ctx.command.qualified_name} {ctx.command.signature}`"
            await self._reject(ctx, usage)
            ctx.error_handled = True
        else:
            await ctx.send("Something went wrong. Please try again in a minute or two.")

    async def _reject(self, ctx: gambit.Context, message: str) -> None:
        try:
            await ctx.message.add_reaction(REJECTED)
        except discord.HTTPException as err:
            LOGGER.warning("Could not add a rejection marker in channel %s: %s", ctx.channel.id, err)
        if message:
            await ctx.reply(message)

    async def _get_session(self, ctx: gambit.Context) -> Session:
        session = await self.registry.get(ctx.channel.id)
        if session is None:
            raise NoActiveGame
        return session

    # region -------- Reporting

    async def _send_board(self, channel: discord.abc.Messageable, session: Session) -> None:
        """Post the current position, falling back to a text board if it can't be drawn."""

        highlights = session.rules.last_move() or ()
        try:
            image = await asyncio.to_thread(self.renderer.render, session.rules.board_fen(), highlights)
        except RenderFailure:
            LOGGER.warning("Failed to rasterize the board for channel %s.", session.channel_id, exc_info=True)
            await channel.send(text_board(session.rules.board_text()))
        else:
            await channel.send(file=discord.File(image, "board.png"))

        if opening := session.rules.opening():
            await channel.send(opening)

    async def _send_replay(self, channel: discord.abc.Messageable, session: Session) -> None:
        frames = session.rules.frames()
        try:
            animation = await asyncio.to_thread(self.renderer.render_sequence, frames)
        except RenderFailure:
            LOGGER.warning("Failed to animate the game for channel %s.", session.channel_id, exc_info=True)
            await channel.send(f"```\n{session.rules.movetext()}\n```")
        else:
            await channel.send(file=discord.File(animation, "board.gif"))

    async def _progress(self, channel: discord.abc.Messageable, session: Session) -> None:
        """Report the position, let the engine answer if it's on turn, and wrap the game up if it's over."""

        await self._send_board(channel, session)
        result = await session.advance(on_engine_move=functools.partial(self._send_board, channel))
        if result is not None:
            await self._game_over(channel, session, result)
        else:
            await channel.send(f"<@{session.turn_id}> turn!")

    async def _game_over(self, channel: discord.abc.Messageable, session: Session, result: GameResult) -> None:
        """Send the game-over card and the replay, then forget the game."""

        try:
            winner_avatar: str | None = None
            if result.winner_id is not None:
                try:
                    winner = self.bot.get_user(result.winner_id) or await self.bot.fetch_user(result.winner_id)
                except discord.HTTPException:
                    LOGGER.warning("Could not look up the winner %s.", result.winner_id)
                else:
                    winner_avatar = winner.display_avatar.url

            await channel.send(embed=GameOverEmbed.from_result(result, winner_avatar=winner_avatar))
            await self._send_replay(channel, session)
        finally:
            await self.registry.remove(session.channel_id)

    # endregion

    @commands.command()
    @gambit.in_chess_venue()
    async def play(self, ctx: gambit.GuildContext, white: discord.User, black: discord.User) -> None:
        """Start a game. Mention the bot as one of the players to play against it.

        Parameters
        ----------
        ctx: `gambit.GuildContext`
            The invocation context.
        white: `discord.User`
            The player with the white pieces.
        black: `discord.User`
            The player with the black pieces.
        """

        engine_player_id: int | None = None
        if self.bot.user and self.bot.user.id in (white.id, black.id):
            engine_player_id = self.bot.user.id

        session = await self.registry.create(ctx.channel.id, white.id, black.id, engine_player_id=engine_player_id)
        await ctx.message.add_reaction(ACCEPTED)
        if engine_player_id is not None:
            await ctx.send("Trying to play with AI")

        async with session.lock:
            await self._progress(ctx.channel, session)

    @commands.command()
    async def move(self, ctx: gambit.GuildContext, move: str | None = None) -> None:
        """Make a move in algebraic notation, e.g. `Nf3`. Without a move, lists the valid ones.

        Parameters
        ----------
        ctx: `gambit.GuildContext`
            The invocation context.
        move: `str`, optional
            The move to make.
        """

        session = await self._get_session(ctx)
        async with session.lock:
            if move is None:
                if session.is_finished:
                    raise NoActiveGame
                if ctx.author.id != session.turn_id:
                    raise NotYourTurn
                await ctx.reply(f"Valid moves:{format_valid_moves(session.valid_moves())}")
                return

            session.move(ctx.author.id, move)
            await ctx.message.add_reaction(ACCEPTED)
            await self._progress(ctx.channel, session)

    @commands.command()
    async def board(self, ctx: gambit.GuildContext) -> None:
        """Show the board. If the bot is stuck on its move, it tries again."""

        session = await self._get_session(ctx)
        async with session.lock:
            if session.is_finished:
                raise NoActiveGame
            await self._progress(ctx.channel, session)

    @commands.command()
    async def draw(self, ctx: gambit.GuildContext) -> None:
        """Offer a draw, or accept the one your opponent offered."""

        session = await self._get_session(ctx)
        async with session.lock:
            drawn = session.offer_draw(ctx.author.id)
            await ctx.message.add_reaction(ACCEPTED)

            if drawn:
                await self._progress(ctx.channel, session)
            else:
                other_id = session.black_id if ctx.author.id == session.white_id else session.white_id
                await ctx.send(f"<@{other_id}> send `{ctx.clean_prefix}draw` to accept.")

    @commands.command()
    async def resign(self, ctx: gambit.GuildContext) -> None:
        """Resign the game. Only the player whose turn it is can resign."""

        session = await self._get_session(ctx)
        async with session.lock:
            session.resign(ctx.author.id)
            await ctx.message.add_reaction(ACCEPTED)
            await self._progress(ctx.channel, session)

    @commands.command()
    async def cancel(self, ctx: gambit.GuildContext) -> None:
        """Cancel the game in this channel. Only for members with a configured admin role."""

        session = await self._get_session(ctx)
        allowed = gambit.can_cancel_games(ctx.author, self.bot.config.chess.admin_roles)
        async with session.lock:
            session.cancel(ctx.author.id, allowed)
            await ctx.message.add_reaction(ACCEPTED)
            await self._progress(ctx.channel, session)

    @commands.command(aliases=["cool"])
    async def replay(self, ctx: gambit.GuildContext) -> None:
        """Show an animation of the game so far."""

        session = await self._get_session(ctx)
        async with ctx.typing():
            await self._send_replay(ctx.channel, session)


async def setup(bot: gambit.Gambit) -> None:
    """Connects cog to bot."""

    chess_config = bot.config.chess
    engine_config = chess_config.engine

    engine_factory = functools.partial(
        EngineBridge,
        engine_config.command,
        options=engine_config.options,
        handshake_timeout=engine_config.handshake_timeout,
        search_grace=engine_config.search_grace,
    )
    registry = SessionRegistry(
        engine_factory=engine_factory,
        move_time=engine_config.move_time,
        max_autoplay_plies=chess_config.max_autoplay_plies,
    )
    renderer = BoardRenderer(size=chess_config.render.size, font_path=chess_config.render.font_path or None)

    await bot.add_cog(ChessCog(bot, registry, renderer))
