"""Data models for todoview."""

from todoview.models.todoist import (
    TodoistDue,
    TodoistItem,
    TodoistProject,
    TodoistSection,
    TodoistLabel,
    TodoistSnapshot,
)
from todoview.models.view import TaskNode, SectionView, ProjectView, TransformedSnapshot, TasksSnapshot

__all__ = [
    "TodoistDue",
    "TodoistItem",
    "TodoistProject",
    "TodoistSection",
    "TodoistLabel",
    "TodoistSnapshot",
    "TaskNode",
    "SectionView",
    "ProjectView",
    "TransformedSnapshot",
    "TasksSnapshot",
]
