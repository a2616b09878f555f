"""SQLAlchemy database models for todoview."""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON

from todoview.database.database import Base
from todoview.models.view import TasksSnapshot


class SnapshotDB(Base):
    """A served snapshot, stored as its JSON payload."""

    __tablename__ = "snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payload = Column(JSON, nullable=False)
    sync_token = Column(String, nullable=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def to_pydantic(self) -> TasksSnapshot:
        return TasksSnapshot.model_validate(self.payload)

    @classmethod
    def from_pydantic(cls, snapshot: TasksSnapshot) -> "SnapshotDB":
        return cls(
            payload=snapshot.model_dump(mode="json", by_alias=True),
            sync_token=snapshot.sync_token,
            fetched_at=snapshot.fetched_at,
        )
