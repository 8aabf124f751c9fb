"""Board drawing with Pillow: still images of a position, and animated replays of a game."""

import logging
from collections.abc import Iterable, Sequence
from io import BytesIO
from typing import TypeAlias

from PIL import Image, ImageDraw, ImageFont

from ..errors import RenderFailure


LOGGER = logging.getLogger(__name__)

__all__ = ("BoardRenderer", "text_board")

_Colour: TypeAlias = tuple[int, int, int] | tuple[int, int, int, int]

PIECE_GLYPHS = {"k": "♚", "q": "♛", "r": "♜", "b": "♝", "n": "♞", "p": "♟"}


class BoardRenderer:
    """Draws chess positions, given as the piece-placement part of a FEN.

    Parameters
    ----------
    size: int, default=512
        The width and height of the images, in pixels.
    font_path: str, optional
        A TrueType font with chess glyphs to draw pieces with. Without one, pieces are drawn as lettered discs.
    light_square: tuple[int, int, int], default=(200, 200, 200)
        The colour of the light squares.
    dark_square: tuple[int, int, int], default=(100, 100, 120)
        The colour of the dark squares.
    mark: tuple[int, int, int, int], default=(55, 55, 155, 100)
        The translucent colour laid over highlighted squares.
    """

    def __init__(
        self,
        *,
        size: int = 512,
        font_path: str | None = None,
        light_square: _Colour = (200, 200, 200),
        dark_square: _Colour = (100, 100, 120),
        mark: _Colour = (55, 55, 155, 100),
    ) -> None:
        self.size = size
        self.pad = 16
        self.square = (size - self.pad) // 8
        self.light_square = light_square
        self.dark_square = dark_square
        self.mark = mark
        self.piece_white: _Colour = (255, 255, 255)
        self.piece_black: _Colour = (0, 0, 0)

        self.text_font = ImageFont.load_default(size=self.pad - 2)
        if font_path:
            try:
                self.piece_font = ImageFont.truetype(font_path, int(self.square * 0.85))
            except OSError as err:
                msg = f"Could not load the piece font at {font_path!r}."
                raise RenderFailure(msg) from err
            self.uses_glyphs = True
        else:
            self.piece_font = ImageFont.load_default(size=int(self.square * 0.5))
            self.uses_glyphs = False

    def render(self, board_fen: str, highlights: Iterable[str] = ()) -> BytesIO:
        """Draw a position as a PNG.

        Parameters
        ----------
        board_fen: str
            The piece placement, e.g. "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR".
        highlights: Iterable[str], default=()
            Squares to mark, e.g. ("e2", "e4").

        Raises
        ------
        RenderFailure
            The position couldn't be parsed or drawn.
        """

        image = self._draw(board_fen, highlights)
        buffer = BytesIO()
        try:
            image.save(buffer, "png")
        except (OSError, ValueError) as err:
            raise RenderFailure(str(err)) from err
        buffer.seek(0)
        return buffer

    def render_sequence(
        self,
        frames: Sequence[tuple[str, Iterable[str]]],
        *,
        frame_duration: int = 1500,
        final_duration: int = 5000,
    ) -> BytesIO:
        """Draw a series of positions as a looping GIF, lingering on the last one.

        Parameters
        ----------
        frames: Sequence[tuple[str, Iterable[str]]]
            Pairs of piece placement and highlighted squares, in order.
        frame_duration: int, default=1500
            How long each frame is shown, in milliseconds.
        final_duration: int, default=5000
            How long the last frame is shown, in milliseconds.

        Raises
        ------
        RenderFailure
            There were no frames, or one of them couldn't be drawn.
        """

        if not frames:
            msg = "A replay needs at least one frame."
            raise RenderFailure(msg)

        images = [
            self._draw(board_fen, highlights).convert("P", palette=Image.Palette.ADAPTIVE)
            for board_fen, highlights in frames
        ]
        durations = [frame_duration] * (len(images) - 1) + [final_duration]

        buffer = BytesIO()
        try:
            images[0].save(buffer, "gif", save_all=True, append_images=images[1:], duration=durations, loop=0)
        except (OSError, ValueError) as err:
            raise RenderFailure(str(err)) from err
        buffer.seek(0)
        return buffer

    def _draw(self, board_fen: str, highlights: Iterable[str]) -> Image.Image:
        placement = parse_placement(board_fen)
        marked = [parse_square(square) for square in highlights]
        try:
            return self._paint(placement, marked)
        except (OSError, ValueError) as err:
            raise RenderFailure(str(err)) from err

    def _paint(self, placement: dict[tuple[int, int], str], marked: list[tuple[int, int]]) -> Image.Image:
        image = Image.new("RGBA", (self.size, self.size), _scale(self.light_square, 0.9))
        draw = ImageDraw.Draw(image)
        s, pad = self.square, self.pad

        # Checker pattern.
        for row in range(8):
            for col in range(8):
                colour = self.dark_square if (row + col) % 2 else self.light_square
                draw.rectangle((pad + col * s, row * s, pad + (col + 1) * s - 1, (row + 1) * s - 1), fill=colour)

        # Highlights, blended over the squares.
        if marked:
            overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
            overlay_draw = ImageDraw.Draw(overlay)
            for col, row in marked:
                box = (pad + col * s, row * s, pad + (col + 1) * s - 1, (row + 1) * s - 1)
                overlay_draw.rectangle(box, fill=self.mark)
            image = Image.alpha_composite(image, overlay)
            draw = ImageDraw.Draw(image)

        for (col, row), symbol in placement.items():
            self._draw_piece(draw, col, row, symbol)

        # Rulers.
        for i in range(8):
            draw.text((pad // 2, s // 2 + s * i), str(8 - i), fill=(0, 0, 0), font=self.text_font, anchor="mm")
            draw.text(
                (pad + s // 2 + s * i, 8 * s + (self.size - 8 * s) // 2),
                "abcdefgh"[i],
                fill=(0, 0, 0),
                font=self.text_font,
                anchor="mm",
            )

        return image.convert("RGB")

    def _draw_piece(self, draw: ImageDraw.ImageDraw, col: int, row: int, symbol: str) -> None:
        s = self.square
        centre = (self.pad + col * s + s // 2, row * s + s // 2)
        if symbol.isupper():
            fill, border = self.piece_white, self.piece_black
        else:
            fill, border = self.piece_black, _scale(self.piece_white, 0.7)

        if self.uses_glyphs:
            glyph = PIECE_GLYPHS[symbol.lower()]
            draw.text(centre, glyph, fill=fill, font=self.piece_font, anchor="mm", stroke_width=1, stroke_fill=border)
        else:
            radius = int(s * 0.38)
            box = (centre[0] - radius, centre[1] - radius, centre[0] + radius, centre[1] + radius)
            draw.ellipse(box, fill=fill, outline=border, width=2)
            draw.text(centre, symbol.upper(), fill=border, font=self.piece_font, anchor="mm")


def parse_placement(board_fen: str) -> dict[tuple[int, int], str]:
    """Map (column, row) from the top-left to piece symbols, for the piece-placement field of a FEN.

    Raises
    ------
    RenderFailure
        The placement is malformed.
    """

    rows = board_fen.split(" ", 1)[0].split("/")
    if len(rows) != 8:
        msg = f"Expected 8 ranks in {board_fen!r}."
        raise RenderFailure(msg)

    placement: dict[tuple[int, int], str] = {}
    for row, rank in enumerate(rows):
        col = 0
        for char in rank:
            if char.isdigit():
                col += int(char)
            elif char.lower() in PIECE_GLYPHS:
                if col < 8:
                    placement[(col, row)] = char
                col += 1
            else:
                msg = f"Unknown piece {char!r} in {board_fen!r}."
                raise RenderFailure(msg)
        if col != 8:
            msg = f"Rank {8 - row} of {board_fen!r} doesn't have 8 squares."
            raise RenderFailure(msg)
    return placement


def parse_square(name: str) -> tuple[int, int]:
    """Turn a square name like "e4" into (column, row) from the top-left."""

    if len(name) != 2 or name[0] not in "abcdefgh" or name[1] not in "12345678":
        msg = f"Invalid square {name!r}."
        raise RenderFailure(msg)
    return "abcdefgh".index(name[0]), 8 - int(name[1])


def text_board(board_text: str) -> str:
    """Wrap a plain-text board in a code block, for when drawing it fails."""

    return f"```\n{board_text}\n```"


def _scale(colour: _Colour, factor: float) -> tuple[int, int, int]:
    r, g, b = colour[:3]
    return int(r * factor), int(g * factor), int(b * factor)
