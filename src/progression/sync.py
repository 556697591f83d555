"""
Write path between learner sessions and a ProgressStore.

One pending snapshot per (user, course) key. High-frequency saves (video
position ticks) are coalesced into at most one write per debounce window;
state-changing events flush immediately. A store outage keeps the snapshot
pending for the next flush instead of dropping it, and the last snapshot
written for a key is kept so a learner can carry on while the store is down.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from progression.errors import StoreUnavailable
from progression.store import ProgressStore, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 2.0
DEFAULT_LAST_KNOWN_LIMIT = 1024

Key = Tuple[str, str]


@dataclass
class _Pending:
    snapshot: Snapshot
    failures: int = 0


@dataclass
class ProgressSync:
    store: ProgressStore
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    clock: Callable[[], float] = time.monotonic
    last_known_limit: int = DEFAULT_LAST_KNOWN_LIMIT

    _pending: Dict[Key, _Pending] = field(default_factory=dict)
    _last_write: Dict[Key, float] = field(default_factory=dict)
    _last_known: OrderedDict[Key, Snapshot] = field(default_factory=OrderedDict)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    def load(self, user_id: str, course_code: str) -> Optional[Snapshot]:
        """
        Pending snapshot if one is waiting, otherwise whatever the store has.

        When the store is unreachable the last snapshot this writer saw for the
        key is returned instead; StoreUnavailable only escapes when there is none.
        """
        key = (user_id, course_code)
        with self._lock:
            pending = self._pending.get(key)
            if pending is not None:
                return pending.snapshot.model_copy(deep=True)
        try:
            loaded = self.store.load(user_id, course_code)
        except StoreUnavailable as e:
            with self._lock:
                known = self._last_known.get(key)
            if known is None:
                raise
            logger.warning(
                "store unavailable, serving last known progress user=%s course=%s reason=%s",
                user_id,
                course_code,
                e.message,
            )
            return known.model_copy(deep=True)
        with self._lock:
            if loaded is None:
                self._last_known.pop(key, None)
            else:
                self._remember(key, loaded)
        return loaded

    def request_save(self, user_id: str, course_code: str, snapshot: Snapshot, *, immediate: bool = False) -> bool:
        """
        Queue `snapshot` for the key and write it if allowed now.

        Returns True when the snapshot reached the store during this call.
        """
        key = (user_id, course_code)
        with self._lock:
            current = self._pending.get(key)
            if current is not None and current.snapshot.saved_at > snapshot.saved_at:
                logger.debug("drop stale save user=%s course=%s", user_id, course_code)
            else:
                failures = current.failures if current else 0
                self._pending[key] = _Pending(snapshot=snapshot, failures=failures)

            if not immediate and self._in_window(key):
                return False
            return self._flush_key(key)

    def has_pending(self, user_id: str, course_code: str) -> bool:
        with self._lock:
            return (user_id, course_code) in self._pending

    def failures(self, user_id: str, course_code: str) -> int:
        with self._lock:
            pending = self._pending.get((user_id, course_code))
            return pending.failures if pending else 0

    def flush(self, user_id: Optional[str] = None, course_code: Optional[str] = None) -> bool:
        """Write pending snapshots (all, or one key). True when nothing is left pending."""
        with self._lock:
            if user_id is not None and course_code is not None:
                keys = [(user_id, course_code)] if (user_id, course_code) in self._pending else []
            else:
                keys = list(self._pending)
            ok = True
            for key in keys:
                ok = self._flush_key(key) and ok
            self._prune_windows()
            return ok

    def flush_due(self) -> int:
        """
        Trailing flush: write every pending snapshot whose debounce window has
        closed. Meant to be called periodically. Returns the number written.
        """
        written = 0
        with self._lock:
            for key in list(self._pending):
                if self._in_window(key):
                    continue
                if self._flush_key(key):
                    written += 1
            self._prune_windows()
        return written

    def reset(self, user_id: str, course_code: str) -> None:
        """
        Delete the stored snapshot, then forget the pending write for the key.

        If the store is unreachable the pending write is kept and
        StoreUnavailable propagates.
        """
        key = (user_id, course_code)
        with self._lock:
            self.store.reset(user_id, course_code)
            self._pending.pop(key, None)
            self._last_write.pop(key, None)
            self._last_known.pop(key, None)

    def _in_window(self, key: Key) -> bool:
        last = self._last_write.get(key)
        return last is not None and self.clock() - last < self.debounce_seconds

    def _prune_windows(self) -> None:
        now = self.clock()
        expired = [k for k, t in self._last_write.items() if now - t >= self.debounce_seconds]
        for key in expired:
            del self._last_write[key]

    def _remember(self, key: Key, snapshot: Snapshot) -> None:
        self._last_known[key] = snapshot.model_copy(deep=True)
        self._last_known.move_to_end(key)
        while len(self._last_known) > self.last_known_limit:
            self._last_known.popitem(last=False)

    def _flush_key(self, key: Key) -> bool:
        pending = self._pending.get(key)
        if pending is None:
            return True
        user_id, course_code = key
        try:
            self.store.save(user_id, course_code, pending.snapshot)
        except StoreUnavailable as e:
            pending.failures += 1
            logger.warning(
                "progress save deferred user=%s course=%s failures=%s reason=%s",
                user_id,
                course_code,
                pending.failures,
                e.message,
            )
            return False
        self._pending.pop(key, None)
        self._last_write[key] = self.clock()
        self._remember(key, pending.snapshot)
        return True
