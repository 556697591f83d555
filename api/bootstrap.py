"""
Process-wide collaborators: the progress store backend, the debounced writer
and the session event channel. Routes get them through FastAPI dependencies.
"""

from typing import Optional

from api.config import SessionLocal, Settings, settings
from api.models import ProgressSnapshot
from api.utils.logger import configure_logging
from api.utils.session_events import SessionEstablished, SessionEventChannel
from infra.progress.local_store import LocalProgressStore
from infra.progress.sql_store import SqlProgressStore
from progression.store import ProgressStore
from progression.sync import ProgressSync

logger = configure_logging()


def build_progress_store(cfg: Settings = settings) -> ProgressStore:
    backend = (cfg.progress_store or "sql").lower()
    if backend == "local":
        logger.info("progress store: local dir=%s", cfg.local_progress_dir or "(memory)")
        return LocalProgressStore(persist_dir=cfg.local_progress_dir)
    if backend != "sql":
        raise ValueError(f"Unknown PROGRESS_STORE backend: {cfg.progress_store!r}")
    logger.info("progress store: sql")
    return SqlProgressStore(session_factory=SessionLocal, model=ProgressSnapshot)


def build_progress_sync(cfg: Settings = settings) -> ProgressSync:
    return ProgressSync(store=build_progress_store(cfg), debounce_seconds=cfg.save_debounce_seconds)


# Global writer; pending debounced saves live here between requests
_progress_sync: Optional[ProgressSync] = None


def get_progress_sync() -> ProgressSync:
    """Get or create the global progress writer."""
    global _progress_sync
    if _progress_sync is None:
        _progress_sync = build_progress_sync()
    return _progress_sync


def _log_session(event: SessionEstablished) -> None:
    logger.info("session established user=%s role=%s", event.user_id, event.role)


_session_channel: Optional[SessionEventChannel] = None


def get_session_channel() -> SessionEventChannel:
    """Get or create the global session event channel."""
    global _session_channel
    if _session_channel is None:
        _session_channel = SessionEventChannel()
        _session_channel.subscribe(_log_session)
    return _session_channel
