"""Routine liveness markers for an external health check.

Each routine calls ``mark_alive(name)`` at the top of every tick. When a
heartbeat directory is configured, a file per routine is rewritten with the
current timestamp so a sidecar or container probe can check its mtime.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RoutineHeartbeat:
    """Track the last time each routine reported itself alive.

    Args:
        heartbeat_dir: Directory for per-routine marker files. None = memory only.
        clock: Time source (epoch seconds).
    """

    def __init__(
        self,
        heartbeat_dir: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.heartbeat_dir = Path(heartbeat_dir) if heartbeat_dir else None
        self._clock = clock
        self._last_seen: dict[str, float] = {}

    def mark_alive(self, name: str) -> None:
        now = self._clock()
        self._last_seen[name] = now
        if self.heartbeat_dir is None:
            return
        try:
            self.heartbeat_dir.mkdir(parents=True, exist_ok=True)
            (self.heartbeat_dir / name).write_text(f"{now:.3f}\n")
        except OSError as exc:
            logger.warning("Failed to write heartbeat for %s: %s", name, exc)

    def last_seen(self, name: str) -> Optional[float]:
        return self._last_seen.get(name)

    def is_alive(self, name: str, max_age_sec: float) -> bool:
        """True if the routine reported within ``max_age_sec``."""
        seen = self._last_seen.get(name)
        if seen is None:
            return False
        return self._clock() - seen <= max_age_sec

    def status(self) -> dict:
        """Seconds since last heartbeat per routine."""
        now = self._clock()
        return {name: now - seen for name, seen in self._last_seen.items()}
