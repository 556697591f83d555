from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Type

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from progression.errors import StoreUnavailable
from progression.store import ProgressStore, Snapshot

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo, so rows are compared as naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass
class SqlProgressStore(ProgressStore):
    """
    SQLAlchemy-backed ProgressStore.

    - One `progress_snapshots` row per (user, course), payload stored as JSON.
    - Writes older than the stored row's `saved_at` are dropped.
    - Every SQLAlchemy failure surfaces as `StoreUnavailable`.

    `model` is the mapped row class; it needs `user_id`, `course_code`,
    `payload` (JSON) and `saved_at` columns.
    """

    session_factory: Callable[[], Session]
    model: Type[Any]

    def _row(self, db: Session, user_id: str, course_code: str) -> Optional[Any]:
        model = self.model
        return (
            db.query(model)
            .filter(model.user_id == str(user_id), model.course_code == course_code)
            .first()
        )

    def load(self, user_id: str, course_code: str) -> Optional[Snapshot]:
        db = self.session_factory()
        try:
            row = self._row(db, user_id, course_code)
            if row is None:
                return None
            try:
                return Snapshot.model_validate(row.payload or {})
            except ValidationError as e:
                # unreadable payload is treated like a missing snapshot
                logger.warning("unreadable snapshot user=%s course=%s: %s", user_id, course_code, e)
                return None
        except SQLAlchemyError as e:
            raise StoreUnavailable("Progress store unavailable", details={"error": str(e)}) from e
        finally:
            db.close()

    def save(self, user_id: str, course_code: str, snapshot: Snapshot) -> None:
        saved_at = _naive_utc(snapshot.saved_at)
        db = self.session_factory()
        try:
            row = self._row(db, user_id, course_code)
            if row is not None and row.saved_at is not None and _naive_utc(row.saved_at) > saved_at:
                logger.debug("dropping older snapshot user=%s course=%s", user_id, course_code)
                return
            payload = snapshot.model_dump(mode="json")
            if row is None:
                row = self.model(user_id=str(user_id), course_code=course_code, payload=payload, saved_at=saved_at)
                db.add(row)
            else:
                row.payload = payload
                row.saved_at = saved_at
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable("Progress store unavailable", details={"error": str(e)}) from e
        finally:
            db.close()

    def reset(self, user_id: str, course_code: str) -> None:
        db = self.session_factory()
        try:
            row = self._row(db, user_id, course_code)
            if row is not None:
                db.delete(row)
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable("Progress store unavailable", details={"error": str(e)}) from e
        finally:
            db.close()
