from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from progression.models import LearnerProgress, Module, QubitsDashboard, QubitsModule


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Snapshot(BaseModel):
    """
    Persisted progress for one (user, course) pair.

    Every field has a default so a partially written snapshot still loads.
    Unset qubits/dashboard/progress mean "use the fresh values".
    """
    modules: List[Module] = Field(default_factory=list)
    qubits_modules: Optional[List[QubitsModule]] = None
    qubits_dashboard: Optional[QubitsDashboard] = None
    progress: Optional[LearnerProgress] = None
    saved_at: datetime = Field(default_factory=_utcnow)


def snapshot_key(user_id: str, course_code: str) -> str:
    return f"learnova-progress-{user_id}-{course_code}"


class ProgressStore(ABC):
    """
    Persistence boundary for learner snapshots.

    Backends (durable SQL, local key-value) live in `infra.progress` and are
    interchangeable. Implementations raise `StoreUnavailable` when the
    underlying storage cannot be reached; anything else is a bug.
    """

    @abstractmethod
    def load(self, user_id: str, course_code: str) -> Optional[Snapshot]:
        raise NotImplementedError

    @abstractmethod
    def save(self, user_id: str, course_code: str, snapshot: Snapshot) -> None:
        """
        Persist `snapshot`. A backend may skip the write when the stored
        snapshot has a later `saved_at` (last write wins).
        """

        raise NotImplementedError

    @abstractmethod
    def reset(self, user_id: str, course_code: str) -> None:
        raise NotImplementedError
