from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import ValidationError

from progression.errors import StoreUnavailable
from progression.store import ProgressStore, Snapshot, snapshot_key

logger = logging.getLogger(__name__)


@dataclass
class LocalProgressStore(ProgressStore):
    """
    Local key-value ProgressStore.

    - Uses one JSON file per snapshot key when `persist_dir` is set.
    - In-memory (ephemeral) otherwise.
    """

    persist_dir: Optional[str] = None

    _memory: Dict[str, str] = field(default_factory=dict)

    def _path(self, key: str) -> str:
        return os.path.join(self.persist_dir, f"{key}.json")

    def _read(self, key: str) -> Optional[str]:
        if not self.persist_dir:
            return self._memory.get(key)
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise StoreUnavailable("Local progress store unavailable", details={"error": str(e)}) from e

    def _write(self, key: str, raw: str) -> None:
        if not self.persist_dir:
            self._memory[key] = raw
            return
        try:
            os.makedirs(self.persist_dir, exist_ok=True)
            tmp = self._path(key) + ".tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(raw)
            os.replace(tmp, self._path(key))
        except OSError as e:
            raise StoreUnavailable("Local progress store unavailable", details={"error": str(e)}) from e

    def load(self, user_id: str, course_code: str) -> Optional[Snapshot]:
        raw = self._read(snapshot_key(user_id, course_code))
        if raw is None:
            return None
        try:
            return Snapshot.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("unreadable snapshot user=%s course=%s: %s", user_id, course_code, e)
            return None

    def save(self, user_id: str, course_code: str, snapshot: Snapshot) -> None:
        key = snapshot_key(user_id, course_code)
        current = self.load(user_id, course_code)
        if current is not None and current.saved_at > snapshot.saved_at:
            logger.debug("dropping older snapshot key=%s", key)
            return
        self._write(key, snapshot.model_dump_json())

    def reset(self, user_id: str, course_code: str) -> None:
        key = snapshot_key(user_id, course_code)
        if not self.persist_dir:
            self._memory.pop(key, None)
            return
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreUnavailable("Local progress store unavailable", details={"error": str(e)}) from e
