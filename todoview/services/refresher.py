"""Snapshot refresh service for todoview.

Holds the latest served snapshot, replaces it wholesale on every successful
refresh, and keeps serving the previous one when a refresh fails.
"""

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from todoview.config import ConfigurationError
from todoview.database.snapshot_repository import SnapshotRepository
from todoview.engine.pipeline import transform_snapshot
from todoview.integrations.todoist import TodoistClient, TodoistError
from todoview.models.view import TasksSnapshot

logger = logging.getLogger(__name__)


class RefreshResult:
    """Outcome of one refresh attempt."""

    def __init__(self, snapshot: Optional[TasksSnapshot], error: Optional[str] = None):
        self.snapshot = snapshot
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


class SnapshotRefresher:
    """Fetches, transforms and caches snapshots."""

    def __init__(
        self,
        client_factory: Callable[[], TodoistClient],
        session_factory: Optional[Callable[[], Session]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the refresher.

        Args:
            client_factory: Builds the Todoist client (may raise ConfigurationError)
            session_factory: Session factory for the snapshot cache (None disables caching)
            clock: Returns the current time (defaults to UTC now)
        """
        self.client_factory = client_factory
        self.session_factory = session_factory
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.snapshot: Optional[TasksSnapshot] = None
        self.last_error: Optional[str] = None
        self.last_attempt_at: Optional[datetime] = None
        self._lock = threading.Lock()

    def load_cached(self) -> Optional[TasksSnapshot]:
        """Load the newest cached snapshot into memory, if there is one."""
        if self.session_factory is None:
            return None
        db = self.session_factory()
        try:
            cached = SnapshotRepository(db).latest()
        finally:
            db.close()
        if cached is not None and self.snapshot is None:
            self.snapshot = cached
            logger.info(f"Loaded cached snapshot fetched at {cached.fetched_at.isoformat()}")
        return cached

    def refresh(self) -> RefreshResult:
        """Fetch and transform a new snapshot.

        On failure the previous snapshot stays in place and the error is
        recorded in `last_error`.

        Returns:
            RefreshResult with the snapshot now being served and the error, if any
        """
        with self._lock:
            now = self.clock()
            self.last_attempt_at = now
            try:
                client = self.client_factory()
                upstream = client.fetch_snapshot(now=now)
                transformed = transform_snapshot(upstream, now=now)
                snapshot = TasksSnapshot(
                    projects=transformed.projects,
                    labels=transformed.labels,
                    sync_token=upstream.sync_token,
                    fetched_at=now,
                )
            except (TodoistError, ConfigurationError) as e:
                self.last_error = str(e)
                logger.error(f"Snapshot refresh failed: {type(e).__name__}: {str(e)}")
                return RefreshResult(self.snapshot, self.last_error)
            except Exception as e:
                self.last_error = f"Unexpected error: {type(e).__name__}: {str(e)}"
                logger.error(f"Snapshot refresh failed unexpectedly: {type(e).__name__}: {str(e)}", exc_info=True)
                return RefreshResult(self.snapshot, self.last_error)

            self.snapshot = snapshot
            self.last_error = None
            logger.info(f"Snapshot refreshed: {len(snapshot.projects)} projects")

            self._persist(snapshot)
            return RefreshResult(snapshot)

    def _persist(self, snapshot: TasksSnapshot) -> None:
        if self.session_factory is None:
            return
        db = self.session_factory()
        try:
            repo = SnapshotRepository(db)
            repo.save(snapshot)
            repo.prune()
        except Exception as e:
            # The in-memory snapshot is still served; only the cache is stale.
            logger.warning(f"Could not cache snapshot: {type(e).__name__}: {str(e)}")
        finally:
            db.close()

    async def run_forever(self, interval_seconds: float) -> None:
        """Refresh on a fixed interval until cancelled, whatever each outcome."""
        while True:
            try:
                await asyncio.to_thread(self.refresh)
            except Exception as e:
                logger.error(f"Refresh loop iteration failed: {type(e).__name__}: {str(e)}", exc_info=True)
            await asyncio.sleep(interval_seconds)
