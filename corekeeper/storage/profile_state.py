"""
Persists per-subscription refresh history next to the configuration file.
"""

import asyncio
import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from corekeeper.models.results import SubscriptionOutcome

log = logging.getLogger(__name__)


class ProfileStateStore:
    """
    In-memory record of the last refresh result of each subscription,
    flushed to a JSON file on demand.
    """

    FILE_NAME = "profile_state.json"

    def __init__(self, state_dir: Path):
        self.state_file = state_dir / self.FILE_NAME
        self._entries: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        self._load()

    def _load(self) -> None:
        if not self.state_file.is_file():
            return
        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._entries = data
        except (json.JSONDecodeError, OSError) as e:
            log.warning(f"Could not read profile state, starting empty: {e}")

    def get(self, sub_id: str) -> dict[str, Any] | None:
        return self._entries.get(sub_id)

    async def record(self, outcome: SubscriptionOutcome) -> None:
        async with self._lock:
            entry = self._entries.setdefault(
                outcome.sub_id, {"success_count": 0, "failure_count": 0}
            )
            entry["last_success"] = outcome.success
            entry["last_message"] = outcome.message
            entry["last_attempt"] = int(time.time())
            if outcome.success:
                entry["success_count"] += 1
            else:
                entry["failure_count"] += 1

    async def save(self) -> None:
        async with self._lock:
            payload = json.dumps(self._entries, indent=2, sort_keys=True)
        await asyncio.to_thread(self._write, payload)

    def _write(self, payload: str) -> None:
        tmp_path = self.state_file.with_suffix(".json.tmp")
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, self.state_file)
