from __future__ import annotations

import logging
from pathlib import Path

from fantasy_guild.core.events import EventBus
from fantasy_guild.services.logger import _rotate_latest_log, configure_logging


def _release(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True


def test_configure_logging_splits_core_and_event_logs(tmp_path: Path) -> None:
    bundle = configure_logging(tmp_path / "logs")
    try:
        logging.getLogger("fantasy_guild.core.engine").info("Simulated 3 ticks")
        EventBus().publish("card_spawned", card_id="task_0001")
        for handler in bundle.core.handlers + bundle.events.handlers:
            handler.flush()

        latest = bundle.latest_log_path.read_text(encoding="utf-8")
        events = bundle.events_log_path.read_text(encoding="utf-8")
    finally:
        _release(bundle.events)
        _release(bundle.core)

    assert "Simulated 3 ticks" in latest
    assert "card_spawned" not in latest
    assert "card_spawned card_id=task_0001" in events


def test_rotate_latest_log_keeps_five_archives(tmp_path: Path) -> None:
    for index in range(7):
        (tmp_path / f"latest_2026010{index}_000000.log").write_text("old", encoding="utf-8")
    (tmp_path / "latest.log").write_text("previous run", encoding="utf-8")

    latest = _rotate_latest_log(tmp_path)

    assert latest == tmp_path / "latest.log"
    assert not latest.exists()
    assert len(list(tmp_path.glob("latest_*.log"))) == 5
