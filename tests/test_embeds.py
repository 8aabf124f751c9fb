from gambit.chess import GameResult, Outcome
from gambit.utils import GameOverEmbed


def make_result(outcome: Outcome, winner_id: int | None, movetext: str = "1. e4 e5 *") -> GameResult:
    return GameResult(
        outcome=outcome,
        method="Checkmate",
        white_id=1,
        black_id=2,
        winner_id=winner_id,
        movetext=movetext,
    )


def test_win_and_loss_fields():
    embed = GameOverEmbed.from_result(make_result(Outcome.BLACK_WON, 2), winner_avatar="https://example.com/a.png")
    assert embed.title == "Game over"
    assert embed.description == "Checkmate"
    assert embed.thumbnail.url == "https://example.com/a.png"
    assert [field.name for field in embed.fields] == ["Lose", "Win", "Game:"]
    assert embed.fields[0].value.endswith("<@1>")
    assert embed.fields[1].value.endswith("<@2>")
    assert embed.fields[2].value == "1. e4 e5 *"


def test_draw_fields():
    embed = GameOverEmbed.from_result(make_result(Outcome.DRAW, None))
    assert [field.value for field in embed.fields[:2]] == ["<@1>", "<@2>"]
    assert embed.fields[0].name == embed.fields[1].name == "Draw"
    assert embed.thumbnail.url is None


def test_long_games_are_truncated():
    movetext = "1. e4 e5 " * 300
    embed = GameOverEmbed.from_result(make_result(Outcome.WHITE_WON, 1, movetext))
    value = embed.fields[2].value
    assert value is not None
    assert len(value) == 1024
    assert value.startswith("\N{HORIZONTAL ELLIPSIS}")
    assert value.endswith(movetext[-10:])
