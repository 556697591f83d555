"""
ProgressStore implementations live here (infra adapters).

- `infra.progress.sql_store.SqlProgressStore`: durable, one row per (user, course).
- `infra.progress.local_store.LocalProgressStore`: JSON files on disk, or in-memory
  when no directory is configured.
"""

from infra.progress.local_store import LocalProgressStore
from infra.progress.sql_store import SqlProgressStore

__all__ = ["LocalProgressStore", "SqlProgressStore"]
