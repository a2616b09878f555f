"""Snapshot transformation pipeline for todoview.

Pure function from an upstream snapshot (plus "now") to the render-ready
snapshot. Same inputs always produce the same output.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from todoview.engine.hierarchy import build_task_forest
from todoview.engine.projects import filter_labels, select_projects
from todoview.models.todoist import (
    TodoistItem,
    TodoistLabel,
    TodoistProject,
    TodoistSection,
    TodoistSnapshot,
)
from todoview.models.view import TransformedSnapshot

logger = logging.getLogger(__name__)


def transform_snapshot(snapshot: TodoistSnapshot, now: Optional[datetime] = None) -> TransformedSnapshot:
    """Transform an upstream snapshot into the render-ready snapshot.

    Args:
        snapshot: Full upstream state, with recently completed items
        now: Reference time (defaults to the current UTC time)

    Returns:
        TransformedSnapshot with ordered projects and filtered labels
    """
    return transform_data(
        snapshot.projects,
        snapshot.sections,
        snapshot.items,
        snapshot.labels,
        snapshot.completed_items,
        now=now,
    )


def transform_data(
    projects: Iterable[TodoistProject],
    sections: Iterable[TodoistSection],
    items: Iterable[TodoistItem],
    labels: Iterable[TodoistLabel],
    completed_items: Optional[Iterable[TodoistItem]] = None,
    now: Optional[datetime] = None,
) -> TransformedSnapshot:
    """Transform raw upstream collections into the render-ready snapshot."""
    if now is None:
        now = datetime.now(timezone.utc)

    forest = build_task_forest(items, completed_items, now)
    selected = select_projects(projects, sections, forest)
    kept_labels = filter_labels(labels)

    logger.debug(f"Transformed snapshot: {len(selected)} projects, {len(kept_labels)} labels")
    return TransformedSnapshot(projects=selected, labels=kept_labels)
