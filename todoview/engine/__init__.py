"""Transformation engine for todoview."""

from todoview.engine.retention import parse_timestamp, is_within_retention_window
from todoview.engine.ordering import sort_tasks, compare_tasks, task_sort_key, due_timestamp
from todoview.engine.visibility import is_task_visible, has_visible_tasks, count_visible_tasks
from todoview.engine.hierarchy import TaskForest, build_task_forest
from todoview.engine.sections import assemble_sections
from todoview.engine.projects import select_projects, filter_labels
from todoview.engine.pipeline import transform_snapshot, transform_data

__all__ = [
    "parse_timestamp",
    "is_within_retention_window",
    "sort_tasks",
    "compare_tasks",
    "task_sort_key",
    "due_timestamp",
    "is_task_visible",
    "has_visible_tasks",
    "count_visible_tasks",
    "TaskForest",
    "build_task_forest",
    "assemble_sections",
    "select_projects",
    "filter_labels",
    "transform_snapshot",
    "transform_data",
]
