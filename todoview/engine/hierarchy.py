"""Task hierarchy construction for todoview.

Merges live and recently completed items into one forest: every task is
either attached to its parent or becomes a root, bucketed by project and
section. Malformed references never raise; they demote the task to root.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from todoview.engine.display import (
    format_due_date,
    get_due_date_color,
    get_due_date_status,
    get_priority_info,
)
from todoview.engine.ordering import sort_tasks
from todoview.engine.retention import is_within_retention_window
from todoview.models.constants import MAX_TASK_DEPTH, NO_SECTION
from todoview.models.todoist import TodoistItem
from todoview.models.view import TaskNode

logger = logging.getLogger(__name__)


class TaskForest:
    """Result of building the task hierarchy."""

    def __init__(self):
        self.tasks: Dict[str, TaskNode] = {}
        # project_id -> section_id (or NO_SECTION) -> root tasks, unsorted
        self.roots: Dict[Optional[str], Dict[str, List[TaskNode]]] = {}

    def roots_for(self, project_id: str) -> Dict[str, List[TaskNode]]:
        """Get the root-task buckets for a project (empty if it has none)."""
        return self.roots.get(project_id, {})

    def add_root(self, task: TaskNode) -> None:
        section_key = task.section_id or NO_SECTION
        self.roots.setdefault(task.project_id, {}).setdefault(section_key, []).append(task)


def build_task_forest(
    items: Iterable[TodoistItem],
    completed_items: Optional[Iterable[TodoistItem]],
    now: datetime,
) -> TaskForest:
    """Build the task forest from live and completed items.

    Steps:
    1. Merge live and completed items, dropping deleted ones
    2. Materialize a TaskNode per item (a completed copy replaces a live one with the same id)
    3. Attach each task to its parent, or bucket it as a root by project/section
    4. Sort every task's subtasks

    Parent edges that dangle, form a cycle, or nest deeper than MAX_TASK_DEPTH
    are ignored and the task is treated as a root.

    Args:
        items: Live items from the sync snapshot
        completed_items: Items completed inside the retention window (may be None)
        now: Reference time for the retention window and due labels

    Returns:
        TaskForest with the id lookup and root buckets
    """
    forest = TaskForest()

    all_items = list(items) + list(completed_items or [])
    for item in all_items:
        if item.is_deleted:
            continue
        forest.tasks[item.id] = _materialize(item, now)

    parents = _resolve_parents(forest.tasks)

    for task_id, task in forest.tasks.items():
        parent_id = parents.get(task_id)
        if parent_id is not None:
            forest.tasks[parent_id].subtasks.append(task)
        else:
            forest.add_root(task)

    for task in forest.tasks.values():
        if task.subtasks:
            task.subtasks = sort_tasks(task.subtasks)

    logger.debug(
        f"Built task forest: {len(forest.tasks)} tasks, "
        f"{sum(len(b) for p in forest.roots.values() for b in p.values())} roots"
    )
    return forest


def _materialize(item: TodoistItem, now: datetime) -> TaskNode:
    data = item.model_dump(exclude={"is_deleted"})
    status = get_due_date_status(item.due, now)
    priority = get_priority_info(item.priority)
    return TaskNode(
        **data,
        subtasks=[],
        is_recently_completed=item.checked and is_within_retention_window(item.completed_at, now),
        due_status=status,
        due_label=format_due_date(item.due, now),
        due_color=get_due_date_color(status),
        priority_label=priority["label"],
        priority_color=priority["color"],
    )


def _resolve_parents(tasks: Dict[str, TaskNode]) -> Dict[str, str]:
    """Map task id -> accepted parent id.

    Only edges to another task in the lookup are candidates. Every task on a
    parent cycle loses its edge, and a task whose ancestor chain would exceed
    MAX_TASK_DEPTH loses its edge too.
    """
    candidates: Dict[str, str] = {}
    for task_id, task in tasks.items():
        if task.parent_id and task.parent_id != task_id and task.parent_id in tasks:
            candidates[task_id] = task.parent_id

    # Each task has at most one parent, so cycles are found by walking up.
    visited = set()
    for start in tasks:
        if start in visited:
            continue
        path: Dict[str, int] = {}
        node: Optional[str] = start
        while node is not None and node not in visited and node not in path:
            path[node] = len(path)
            node = candidates.get(node)
        if node is not None and node in path:
            cycle = list(path)[path[node]:]
            logger.warning(f"Parent cycle among tasks {cycle}; treating them as roots")
            for task_id in cycle:
                candidates.pop(task_id, None)
        visited.update(path)

    depths: Dict[str, int] = {}
    for start in tasks:
        chain: List[str] = []
        node = start
        while node not in depths and node in candidates:
            chain.append(node)
            node = candidates[node]
        base = depths.get(node, 0)
        if node not in depths:
            depths[node] = 0
        for task_id in reversed(chain):
            base += 1
            if base > MAX_TASK_DEPTH:
                logger.warning(f"Task {task_id} nested deeper than {MAX_TASK_DEPTH}; treating it as a root")
                candidates.pop(task_id)
                base = 0
            depths[task_id] = base

    return candidates
