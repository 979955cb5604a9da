"""Snapshot persistence for the experience store and personality state.

Purpose of this abstraction:
    Keep in-memory state durable across restarts on a best-effort basis.
    The snapshot is the only on-disk artifact; the pattern index is never
    written and is rebuilt from the restored experiences.

Snapshot format (`SNAPSHOT_VERSION = 1`):
    {
      "version": 1,
      "saved_at": "<iso8601>",
      "experiences": [{id, content, source, timestamp, metadata}, ...],
      "personality": {"curiosity": .., "happiness": .., "caution": ..}
    }

Write path:
    1. Copy experiences and personality under shared access.
    2. Release every lock.
    3. Serialise to `<path>.tmp` and `os.replace` it over `<path>`.

Failure handling:
    `read_snapshot` / `write_snapshot` raise `PersistenceError`. The manager
    catches it, logs a warning, and keeps serving from memory. A missing or
    corrupt snapshot at startup means an empty store, never a crash.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from aicore.core.errors import PersistenceError, ValidationError
from aicore.core.personality import PersonalityState
from aicore.memory.experience_store import Experience


logger = logging.getLogger(__name__)


SNAPSHOT_VERSION = 1


def atomic_json_save(path, data):
    """Persist JSON data atomically via temporary file replacement.

    Args:
        path: Destination JSON path. Parent directories are created.
        data: JSON-serializable payload.

    Side effects:
        Writes `<path>.tmp` and atomically replaces `path`.
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)


def build_snapshot(experiences, personality: Optional[PersonalityState]) -> dict:
    payload = {
        "version": SNAPSHOT_VERSION,
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "experiences": [exp.to_dict() for exp in experiences],
    }
    if personality is not None:
        payload["personality"] = personality.to_dict()
    return payload


def write_snapshot(path: str, experiences, personality: Optional[PersonalityState] = None) -> None:
    """Write a snapshot file.

    Raises:
        PersistenceError: On any filesystem or serialisation failure.
    """
    try:
        atomic_json_save(path, build_snapshot(experiences, personality))
    except (OSError, TypeError, ValueError) as err:
        raise PersistenceError(f"failed to write snapshot {path}: {err}") from err


def read_snapshot(path: str) -> Tuple[List[Experience], Optional[PersonalityState]]:
    """Read and validate a snapshot file.

    Returns:
        `(experiences, personality_or_None)`.

    Raises:
        FileNotFoundError: When no snapshot exists yet.
        PersistenceError: When the file is unreadable or malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as err:
        raise PersistenceError(f"failed to read snapshot {path}: {err}") from err

    # Bare lists are accepted for snapshots that only held experiences.
    if isinstance(data, list):
        data = {"experiences": data}
    if not isinstance(data, dict) or not isinstance(data.get("experiences", []), list):
        raise PersistenceError(f"snapshot {path} has an unexpected structure")

    try:
        experiences = [Experience.from_dict(item) for item in data.get("experiences", [])]
        personality = None
        if isinstance(data.get("personality"), dict):
            personality = PersonalityState.from_dict(data["personality"])
    except (ValidationError, TypeError, ValueError) as err:
        raise PersistenceError(f"snapshot {path} is corrupt: {err}") from err

    return experiences, personality


class PersistenceManager:
    """Loads the snapshot once and rewrites it on a fixed period.

    Args:
        store: The shared `ExperienceStore`.
        personality: Optional `PersonalityModel` saved alongside experiences.
        path: Snapshot file path.
        interval_seconds: Period of the background timer.
    """

    def __init__(self, store, personality=None, path="data/memory.json", interval_seconds=60.0):
        self.store = store
        self.personality = personality
        self.path = path
        self.interval_seconds = float(interval_seconds)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._write_lock = threading.Lock()

    def load(self) -> int:
        """Populate the store (and personality) from the snapshot.

        Returns:
            Number of experiences loaded; 0 when starting fresh.
        """
        try:
            experiences, personality = read_snapshot(self.path)
        except FileNotFoundError:
            logger.warning("No snapshot at %s, starting with fresh memory", self.path)
            return 0
        except PersistenceError as err:
            logger.warning("Ignoring unusable snapshot, starting with fresh memory: %s", err)
            return 0

        loaded = self.store.restore(experiences)
        if personality is not None and self.personality is not None:
            self.personality.restore(personality)
        logger.info("Loaded %d experiences from %s", loaded, self.path)
        return loaded

    def snapshot(self) -> bool:
        """Write the current state once.

        Returns:
            True on success, False when the write failed (already logged).
        """
        # Serialise writers so an older copy never lands after a newer one.
        with self._write_lock:
            experiences = self.store.list()
            personality = self.personality.state() if self.personality is not None else None
            try:
                write_snapshot(self.path, experiences, personality)
            except PersistenceError as err:
                logger.warning("Snapshot failed, continuing from memory: %s", err)
                return False

        logger.debug("Memory saved to %s (%d experiences)", self.path, len(experiences))
        return True

    def _run(self):
        while not self._stop.wait(self.interval_seconds):
            self.snapshot()

    def start(self) -> None:
        """Start the background snapshot timer (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="snapshot-timer", daemon=True)
        self._thread.start()
        logger.info("Snapshot timer started (every %.0fs)", self.interval_seconds)

    def stop(self, final_snapshot: bool = True) -> None:
        """Stop the timer and optionally write one last snapshot."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=max(1.0, self.interval_seconds))
            self._thread = None
        if final_snapshot:
            self.snapshot()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
