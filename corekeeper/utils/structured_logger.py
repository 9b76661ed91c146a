"""
Structured logging system for maintenance events.
Provides JSON-formatted logs with context and metadata.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Logger that outputs both human-readable and machine-parseable records.

    Usage:
        logger = StructuredLogger("corekeeper", log_dir=paths.log_dir)
        logger.info("artifact_installed", engine="sing-box", dest="bin/sing_box")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Forward events to the standard logger
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        self.json_log_path: Path | None = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_log_path = log_dir / f"corekeeper_{timestamp}.jsonl"
            self._json_file = open(self.json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    def _format_message(self, event: str, **context) -> str:
        parts = [f"[{event}]"]
        for key, value in context.items():
            parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        """Write structured log entry to JSON file."""
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _emit(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            self._logger.log(level, self._format_message(event, **context))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self._emit(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._emit(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._emit(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._emit(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()


class MaintenanceLogger:
    """Specialized logger for scheduler events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def activity_started(self, activity: str):
        self.logger.debug("activity_started", activity=activity)

    def activity_fired(self, activity: str, elapsed_hours: int, interval_hours: int):
        self.logger.info(
            "activity_fired",
            activity=activity,
            elapsed_hours=elapsed_hours,
            interval_hours=interval_hours,
        )

    def subscription_refreshed(self, sub_id: str, success: bool, message: str):
        log_fn = self.logger.info if success else self.logger.warning
        log_fn("subscription_refreshed", sub_id=sub_id, success=success, message=message)

    def core_downloaded(self, engine: str, file_path: str):
        self.logger.info("core_downloaded", engine=engine, file_path=file_path)

    def artifact_installed(self, engine: str, file_path: str, dest_dir: str):
        self.logger.info(
            "artifact_installed", engine=engine, file_path=file_path, dest_dir=dest_dir
        )

    def artifact_failed(self, engine: str, file_path: str, error: str):
        self.logger.error(
            "artifact_failed", engine=engine, file_path=file_path, error=error
        )

    def housekeeping_run(self, tick: int, saved: bool, purged_files: int):
        self.logger.debug(
            "housekeeping_run", tick=tick, saved=saved, purged_files=purged_files
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, MaintenanceLogger]:
    """
    Create the structured loggers.

    Returns:
        Tuple of (base_logger, maintenance_logger)
    """
    base = StructuredLogger("corekeeper.events", log_dir=log_dir, enable_json=enable_json)
    return base, MaintenanceLogger(base)
