from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(slots=True)
class SimLoggerBundle:
    core: logging.Logger
    events: logging.Logger
    latest_log_path: Path
    events_log_path: Path


def _rotate_latest_log(logs_dir: Path, keep_archives: int = 5) -> Path:
    logs_dir.mkdir(parents=True, exist_ok=True)
    latest = logs_dir / "latest.log"
    if latest.exists():
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        latest.replace(logs_dir / f"latest_{stamp}.log")

    archives = sorted(
        [path for path in logs_dir.glob("latest_*.log") if path.is_file()],
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for stale in archives[keep_archives:]:
        stale.unlink(missing_ok=True)
    return latest


def configure_logging(logs_dir: Path, level: int = logging.INFO, echo: bool = False) -> SimLoggerBundle:
    """Send the simulation log to ``latest.log`` and the domain-event feed to ``events.log``."""
    latest = _rotate_latest_log(logs_dir)
    events_log_path = logs_dir / "events.log"
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    core_logger = logging.getLogger("fantasy_guild")
    core_logger.setLevel(level)
    core_logger.handlers.clear()
    core_logger.propagate = False

    file_handler = logging.FileHandler(latest, mode="w", encoding="utf-8")
    file_handler.setFormatter(formatter)
    core_logger.addHandler(file_handler)
    if echo:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        core_logger.addHandler(stream_handler)

    events_logger = logging.getLogger("fantasy_guild.events")
    events_logger.setLevel(logging.INFO)
    events_logger.handlers.clear()
    events_logger.propagate = False

    events_handler = logging.FileHandler(events_log_path, mode="w", encoding="utf-8")
    events_handler.setFormatter(logging.Formatter("%(message)s"))
    events_logger.addHandler(events_handler)

    return SimLoggerBundle(
        core=core_logger,
        events=events_logger,
        latest_log_path=latest,
        events_log_path=events_log_path,
    )
