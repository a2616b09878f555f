"""Repository for cached snapshots."""

import logging
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from todoview.database.models import SnapshotDB
from todoview.models.view import TasksSnapshot

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 5


class SnapshotRepository:
    """Repository for snapshot cache operations."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, snapshot: TasksSnapshot) -> None:
        """Store a snapshot as the newest cached one."""
        try:
            self.db.add(SnapshotDB.from_pydantic(snapshot))
            self.db.commit()
            logger.debug(f"Cached snapshot fetched at {snapshot.fetched_at.isoformat()}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to cache snapshot: {type(e).__name__}: {str(e)}")
            raise

    def latest(self) -> Optional[TasksSnapshot]:
        """Get the most recently fetched snapshot, if any."""
        row = self.db.query(SnapshotDB).order_by(desc(SnapshotDB.fetched_at), desc(SnapshotDB.id)).first()
        return row.to_pydantic() if row else None

    def prune(self, keep: int = DEFAULT_KEEP) -> int:
        """Delete all but the newest `keep` snapshots.

        Returns:
            Number of snapshots deleted
        """
        stale_ids = [
            row.id
            for row in self.db.query(SnapshotDB.id)
            .order_by(desc(SnapshotDB.fetched_at), desc(SnapshotDB.id))
            .offset(keep)
            .all()
        ]
        if not stale_ids:
            return 0
        try:
            affected = (
                self.db.query(SnapshotDB)
                .filter(SnapshotDB.id.in_(stale_ids))
                .delete(synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Pruned {affected} cached snapshots")
            return affected
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to prune cached snapshots: {type(e).__name__}: {str(e)}")
            raise
