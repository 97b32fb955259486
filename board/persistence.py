"""
Persistence adapters: store each state namespace as one opaque document.
TinyDB is the default backend, JSON files and in-memory storage are also available.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from tinydb import Query, TinyDB

from board.config_loader import AppConfig, StorageType
from board.errors import SaveError

logger = logging.getLogger(__name__)


class StateStorage(Protocol):
    """Keyed storage for serialized store state."""

    def load(self, namespace: str) -> dict[str, Any] | None: ...

    def save(self, namespace: str, state: dict[str, Any]) -> None: ...

    def clear(self, namespace: str) -> None: ...

    def close(self) -> None: ...


# ── TinyDB ───────────────────────────────────────────


class TinyDBStorage:
    """One TinyDB document per namespace in the `state` table."""

    def __init__(self, db_path: str | Path):
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db = TinyDB(str(db_path), indent=2, ensure_ascii=False)
        self.table = self.db.table("state")
        logger.info(f"TinyDB storage opened: {db_path}")

    def load(self, namespace: str) -> dict[str, Any] | None:
        State = Query()
        try:
            results = self.table.search(State.namespace == namespace)
        except (ValueError, OSError) as e:
            logger.error(f"[{namespace}] failed to read TinyDB state: {e}")
            return None
        if not results:
            return None
        return results[0].get("state")

    def save(self, namespace: str, state: dict[str, Any]):
        State = Query()
        try:
            self.table.upsert({"namespace": namespace, "state": state}, State.namespace == namespace)
        except (OSError, TypeError, ValueError) as e:
            raise SaveError(f"Failed to save '{namespace}': {e}", namespace) from e
        logger.debug(f"[{namespace}] state saved")

    def clear(self, namespace: str):
        State = Query()
        self.table.remove(State.namespace == namespace)

    def close(self):
        self.db.close()


# ── JSON files ───────────────────────────────────────


class JsonFileStorage:
    """One `<namespace>.json` file per namespace."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, namespace: str) -> Path:
        return self.data_dir / f"{namespace}.json"

    def load(self, namespace: str) -> dict[str, Any] | None:
        path = self._path(namespace)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load '{namespace}': {e}")
            return None

    def save(self, namespace: str, state: dict[str, Any]):
        try:
            with open(self._path(namespace), "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            raise SaveError(f"Failed to save '{namespace}': {e}", namespace) from e

    def clear(self, namespace: str):
        path = self._path(namespace)
        if path.exists():
            path.unlink()

    def close(self):
        pass


# ── Memory ───────────────────────────────────────────


class MemoryStorage:
    """Process-local storage; state is deep-copied on the way in and out."""

    def __init__(self):
        self._states: dict[str, dict[str, Any]] = {}

    def load(self, namespace: str) -> dict[str, Any] | None:
        state = self._states.get(namespace)
        return copy.deepcopy(state) if state is not None else None

    def save(self, namespace: str, state: dict[str, Any]):
        self._states[namespace] = copy.deepcopy(state)

    def clear(self, namespace: str):
        self._states.pop(namespace, None)

    def close(self):
        pass


def create_storage(config: AppConfig, root: Path | None = None) -> StateStorage:
    """Build the storage backend selected in the config."""
    if config.storage == StorageType.MEMORY:
        return MemoryStorage()

    data_dir = config.resolve_data_dir(root)
    if config.storage == StorageType.JSON:
        return JsonFileStorage(data_dir)
    return TinyDBStorage(data_dir / "board.json")


class PersistentStore:
    """
    Base for stores that hydrate from a namespace on construction and
    write their full state back after every mutation.
    Write failures are logged and kept in `last_save_error`; the in-memory
    state stays authoritative.
    """

    def __init__(self, storage: StateStorage, namespace: str):
        self.storage = storage
        self.namespace = namespace
        self.last_save_error: SaveError | None = None

        state = storage.load(namespace)
        if state:
            try:
                self._restore(state)
            except (ValueError, TypeError, KeyError) as e:
                logger.warning(f"[{namespace}] discarding unreadable state: {e}")

    def _snapshot(self) -> dict[str, Any]:
        raise NotImplementedError

    def _restore(self, state: dict[str, Any]):
        raise NotImplementedError

    def _persist(self) -> bool:
        try:
            self.storage.save(self.namespace, self._snapshot())
        except SaveError as e:
            self.last_save_error = e
            logger.error(f"[{self.namespace}] {e}")
            return False
        self.last_save_error = None
        return True
