import pytest
from PIL import Image

from gambit.chess import BoardRenderer, ChessRules, text_board
from gambit.chess.render import parse_placement, parse_square
from gambit.errors import RenderFailure


START = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


@pytest.fixture(scope="module")
def renderer() -> BoardRenderer:
    return BoardRenderer(size=256)


def test_render_png(renderer: BoardRenderer):
    buffer = renderer.render(START, ("e2", "e4"))
    with Image.open(buffer) as image:
        assert image.format == "PNG"
        assert image.size == (256, 256)


def test_highlights_change_the_picture(renderer: BoardRenderer):
    plain = renderer.render(START).getvalue()
    marked = renderer.render(START, ("e2", "e4")).getvalue()
    assert plain != marked


def test_render_sequence_gif(renderer: BoardRenderer):
    rules = ChessRules()
    for move in ("e4", "e5", "Nf3"):
        rules.apply_move(move)

    buffer = renderer.render_sequence(rules.frames())
    with Image.open(buffer) as image:
        assert image.format == "GIF"
        assert image.n_frames == 4
        assert image.info["duration"] == 1500
        image.seek(3)
        assert image.info["duration"] == 5000


def test_single_frame_sequence(renderer: BoardRenderer):
    buffer = renderer.render_sequence(ChessRules().frames())
    with Image.open(buffer) as image:
        assert image.format == "GIF"
        assert getattr(image, "n_frames", 1) == 1


def test_empty_sequence(renderer: BoardRenderer):
    with pytest.raises(RenderFailure):
        renderer.render_sequence([])


@pytest.mark.parametrize("board_fen", ["", "8/8/8", "rnbqkbnr/ppppxppp/8/8/8/8/PPPPPPPP/RNBQKBNR", "9/8/8/8/8/8/8/8"])
def test_bad_placements(renderer: BoardRenderer, board_fen: str):
    with pytest.raises(RenderFailure):
        renderer.render(board_fen)


def test_bad_highlight(renderer: BoardRenderer):
    with pytest.raises(RenderFailure):
        renderer.render(START, ("z9",))


def test_missing_font():
    with pytest.raises(RenderFailure):
        BoardRenderer(font_path="/nonexistent/font.ttf")


def test_parse_placement():
    placement = parse_placement(START)
    assert len(placement) == 32
    assert placement[(0, 0)] == "r"
    assert placement[(4, 7)] == "K"


def test_parse_square():
    assert parse_square("a8") == (0, 0)
    assert parse_square("h1") == (7, 7)
    assert parse_square("e4") == (4, 4)


def test_text_board():
    text = text_board(ChessRules().board_text())
    assert text.startswith("```\nr n b q k b n r")
    assert text.endswith("R N B Q K B N R\n```")
