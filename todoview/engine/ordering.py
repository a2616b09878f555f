"""Sibling ordering for todoview.

Sorts tasks by completion state, then priority, then due date, then their
original position. This produces a deterministic ordering for rendering.
"""

from typing import List, Optional

from todoview.engine.retention import parse_timestamp
from todoview.models.todoist import TodoistDue
from todoview.models.view import TaskNode


def sort_tasks(tasks: List[TaskNode]) -> List[TaskNode]:
    """Sort a group of sibling tasks.

    Tasks are sorted:
    1. Active tasks (unchecked or recently completed) before finished ones
    2. By priority (4 = most urgent first)
    3. By due date (earliest first, no due date last)
    4. By child_order

    The sort is stable, so true ties keep their input order.

    Args:
        tasks: Sibling tasks to sort

    Returns:
        New list of tasks in display order
    """
    return sorted(tasks, key=task_sort_key)


def task_sort_key(task: TaskNode) -> tuple:
    """Get the full sort key for a task."""
    return (
        _completion_sort_key(task),
        _priority_sort_key(task),
        _due_sort_key(task),
        task.child_order,
    )


def compare_tasks(a: TaskNode, b: TaskNode) -> int:
    """Three-way comparison consistent with sort_tasks.

    Returns:
        -1 if a sorts before b, 1 if after, 0 if tied
    """
    key_a = task_sort_key(a)
    key_b = task_sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def due_timestamp(due: Optional[TodoistDue]) -> Optional[float]:
    """Resolve a due date to a POSIX timestamp.

    `datetime` wins over `date`. A due object with neither, or with an
    unparseable value, counts as no due date.
    """
    if due is None:
        return None
    parsed = parse_timestamp(due.datetime or due.date)
    if parsed is None:
        return None
    return parsed.timestamp()


def _completion_sort_key(task: TaskNode) -> int:
    # Finished tasks that fell out of the retention window go last.
    if task.checked and not task.is_recently_completed:
        return 1
    return 0


def _priority_sort_key(task: TaskNode) -> int:
    return -task.priority


def _due_sort_key(task: TaskNode) -> tuple:
    timestamp = due_timestamp(task.due)
    if timestamp is None:
        return (1, float('inf'))
    return (0, timestamp)
