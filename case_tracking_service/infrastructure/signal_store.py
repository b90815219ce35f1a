# Shared signal stores used for cross-session refresh notifications
import asyncio
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from case_tracking_service.app.config import settings
from case_tracking_service.app.service.exceptions import ConfigurationError
from case_tracking_service.app.service.interfaces.signal_store import (
    AbstractSignalStore,
    SignalChange,
    SignalListener,
)

logger = logging.getLogger(__name__)


class _ListenerRegistry:
    def __init__(self):
        self._listeners: Dict[str, List[SignalListener]] = {}

    def add(self, observer_id: str, listener: SignalListener):
        self._listeners.setdefault(observer_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(observer_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(observer_id, None)

        return unsubscribe

    def notify(self, change: SignalChange) -> None:
        for observer_id, listeners in list(self._listeners.items()):
            if observer_id == change.origin:
                continue
            for listener in list(listeners):
                try:
                    listener(change)
                except Exception as e:
                    logger.error(f"Signal listener for observer {observer_id} failed on key '{change.key}': {e}", exc_info=True)


class InMemorySignalStore(AbstractSignalStore):
    """Signal store shared by sessions living in the same process."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._registry = _ListenerRegistry()

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str, origin: str) -> None:
        self._values[key] = value
        logger.debug(f"Signal '{key}' written by {origin}.")
        self._registry.notify(SignalChange(key=key, new_value=value, origin=origin))

    def remove(self, key: str, origin: str) -> None:
        if key not in self._values:
            return
        del self._values[key]
        self._registry.notify(SignalChange(key=key, new_value=None, origin=origin))

    def subscribe(self, observer_id: str, listener: SignalListener):
        return self._registry.add(observer_id, listener)


class FileSignalStore(AbstractSignalStore):
    """
    Signal store persisted as one JSON file per key in a shared directory.

    Writes from this process are delivered to local listeners immediately; writes from
    other processes are picked up by polling the directory. Removing a key only clears it
    for this process: the file stays in place so processes that have not polled yet still
    see the write.
    """

    def __init__(self, directory: str, poll_interval_seconds: float = 0.5):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._poll_interval_seconds = poll_interval_seconds
        self._registry = _ListenerRegistry()
        self._poll_task: Optional[asyncio.Task] = None
        # key -> (value, origin, nonce) last observed, so polling reports only new writes
        self._last_seen: Dict[str, Optional[Tuple[str, Optional[str], str]]] = {}
        # key -> nonce of the write this process has cleared
        self._cleared: Dict[str, str] = {}
        for path in self._directory.glob("*.json"):
            self._last_seen[path.stem] = self._fingerprint(self._read(path.stem))

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read(self, key: str) -> Optional[dict]:
        try:
            return json.loads(self._path(key).read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable signal file for key '{key}': {e}")
            return None

    @staticmethod
    def _fingerprint(record: Optional[dict]) -> Optional[Tuple[str, Optional[str], str]]:
        if not record:
            return None
        return record.get("value"), record.get("origin"), record.get("nonce", "")

    def _is_cleared(self, key: str, record: Optional[dict]) -> bool:
        return not record or self._cleared.get(key) == record.get("nonce", "")

    def get(self, key: str) -> Optional[str]:
        record = self._read(key)
        return None if self._is_cleared(key, record) else record.get("value")

    def set(self, key: str, value: str, origin: str) -> None:
        record = {"value": value, "origin": origin, "nonce": uuid.uuid4().hex}
        path = self._path(key)
        tmp_path = path.with_suffix(f".{record['nonce']}.tmp")
        tmp_path.write_text(json.dumps(record), encoding="utf-8")
        os.replace(tmp_path, path)
        self._last_seen[key] = self._fingerprint(record)
        self._registry.notify(SignalChange(key=key, new_value=value, origin=origin))

    def remove(self, key: str, origin: str) -> None:
        record = self._read(key)
        if self._is_cleared(key, record):
            return
        self._cleared[key] = record.get("nonce", "")
        self._last_seen[key] = self._fingerprint(record)
        self._registry.notify(SignalChange(key=key, new_value=None, origin=origin))

    def subscribe(self, observer_id: str, listener: SignalListener):
        return self._registry.add(observer_id, listener)

    def poll(self) -> int:
        """Reports changes made by other processes since the last poll. Returns the number of changes."""
        keys = set(self._last_seen) | {path.stem for path in self._directory.glob("*.json")}
        changes = 0
        for key in keys:
            record = self._read(key)
            fingerprint = self._fingerprint(record)
            if fingerprint == self._last_seen.get(key):
                continue
            self._last_seen[key] = fingerprint
            changes += 1
            self._registry.notify(SignalChange(
                key=key,
                new_value=record.get("value") if record else None,
                origin=record.get("origin") if record else None,
            ))
        return changes

    async def start(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())
        logger.info(f"Polling signal directory {self._directory} every {self._poll_interval_seconds}s.")

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval_seconds)
            self.poll()

    async def aclose(self) -> None:
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        try:
            await self._poll_task
        except asyncio.CancelledError:
            pass
        self._poll_task = None


_signal_store_instance: Optional[AbstractSignalStore] = None

def get_signal_store() -> AbstractSignalStore:
    """Returns the process-wide signal store selected by SIGNAL_STORE_BACKEND."""
    global _signal_store_instance
    if _signal_store_instance is None:
        backend = settings.SIGNAL_STORE_BACKEND.lower()
        if backend == "memory":
            _signal_store_instance = InMemorySignalStore()
        elif backend == "file":
            _signal_store_instance = FileSignalStore(settings.SIGNAL_STORE_DIR, settings.SIGNAL_STORE_POLL_SECONDS)
        else:
            raise ConfigurationError(f"Unknown SIGNAL_STORE_BACKEND '{settings.SIGNAL_STORE_BACKEND}'.")
        logger.info(f"Signal store initialized with backend '{backend}'.")
    return _signal_store_instance
