"""Visibility rules for todoview.

A task is visible if it is still open or was completed recently. Finished
tasks outside the retention window are hidden, but they never hide visible
descendants: each subtask is judged on its own.
"""

from typing import Iterable

from todoview.models.view import TaskNode


def is_task_visible(task: TaskNode) -> bool:
    """Check whether a single task should render (ignores subtasks)."""
    return not task.checked or task.is_recently_completed


def has_visible_tasks(tasks: Iterable[TaskNode]) -> bool:
    """Check whether any task in a forest should render.

    Args:
        tasks: Root tasks of the forest

    Returns:
        True if any task, at any depth, is visible
    """
    for task in tasks:
        if is_task_visible(task) or has_visible_tasks(task.subtasks):
            return True
    return False


def count_visible_tasks(tasks: Iterable[TaskNode]) -> int:
    """Count visible tasks in a forest, subtasks included."""
    count = 0
    for task in tasks:
        if is_task_visible(task):
            count += 1
        count += count_visible_tasks(task.subtasks)
    return count
