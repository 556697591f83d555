"""
Typed session-established events.

Login publishes a `SessionEstablished` on the app's `SessionEventChannel`;
interested parts of the app subscribe at start-up. Nothing writes session
state into module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

logger = logging.getLogger("uvicorn")


@dataclass(frozen=True)
class SessionEstablished:
    user_id: int
    email: str
    role: str
    allowed_course_codes: Optional[tuple[str, ...]] = None
    established_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Subscriber = Callable[[SessionEstablished], None]


class SessionEventChannel:
    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> Callable[[], None]:
        """Register `handler`; returns a callable that removes it again."""
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def publish(self, event: SessionEstablished) -> int:
        """Deliver `event` to every subscriber. A failing subscriber does not stop the others."""
        delivered = 0
        for handler in list(self._subscribers):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception("session subscriber %r failed for user=%s", handler, event.user_id)
        return delivered
