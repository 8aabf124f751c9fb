import asyncio
import logging
import pathlib

from gambit.utils import LoggingManager, catchtime


def test_catchtime_measures_and_logs(caplog):
    logger = logging.getLogger("gambit.tests")
    with caplog.at_level(logging.INFO, logger="gambit.tests"), catchtime("Nap", logger) as timer:
        assert timer.elapsed == 0.0

    assert timer.elapsed >= 0.0
    assert any(record.getMessage().startswith("Nap -- Time: ") for record in caplog.records)


def test_logging_manager_writes_and_cleans_up(tmp_path: pathlib.Path):
    root = logging.getLogger()
    before = list(root.handlers)

    async def scenario() -> None:
        async with LoggingManager(stream=False, logging_path=tmp_path / "logs") as manager:
            assert len(manager.handlers) == 1
            logging.getLogger("gambit.tests").info("Started game in channel %s.", 1)

    asyncio.run(scenario())

    assert root.handlers == before
    log_text = (tmp_path / "logs" / "gambit.log").read_text(encoding="utf-8")
    assert "Started game in channel 1." in log_text
    assert "gambit.tests" in log_text
