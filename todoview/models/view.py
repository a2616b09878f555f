"""Transformed (render-ready) models produced by the pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from todoview.models.todoist import TodoistDue, TodoistLabel


class TaskNode(BaseModel):
    """A task with its subtasks attached, as served to the client."""

    id: str = Field(..., description="Todoist item id")
    project_id: Optional[str] = Field(None, description="Owning project id")
    section_id: Optional[str] = Field(None, description="Owning section id")
    parent_id: Optional[str] = Field(None, description="Parent item id")
    content: str = Field("", description="Task title")
    description: str = Field("", description="Task notes")
    priority: int = Field(1, ge=1, le=4, description="1 (normal) to 4 (urgent)")
    due: Optional[TodoistDue] = Field(None, description="Due date, if any")
    labels: List[str] = Field(default_factory=list, description="Label names")
    checked: bool = Field(False, description="Completion flag")
    child_order: int = Field(0, description="Position among siblings")
    added_at: Optional[str] = Field(None, description="Creation timestamp")
    completed_at: Optional[str] = Field(None, description="Completion timestamp")
    subtasks: List[TaskNode] = Field(default_factory=list, description="Sorted child tasks")
    is_recently_completed: bool = Field(
        False,
        alias="isRecentlyCompleted",
        description="Checked and completed inside the retention window",
    )
    due_status: str = Field("no-date", description="overdue, today, tomorrow, this-week, future or no-date")
    due_label: str = Field("", description="Human-readable due date")
    due_color: str = Field("inherit", description="CSS color for the due label")
    priority_label: str = Field("P4", description="Priority as shown in Todoist (P1 = most urgent)")
    priority_color: str = Field("transparent", description="CSS color for the priority marker")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True


class SectionView(BaseModel):
    """A section of a project with its sorted root tasks.

    The synthetic "no section" bucket has id/name None and order -1.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    order: float = -1
    tasks: List[TaskNode] = Field(default_factory=list)
    task_count: int = Field(0, description="Visible tasks in this section, subtasks included")


class ProjectView(BaseModel):
    """A project with its sections and a flattened task list."""

    id: str
    name: str
    color: str
    color_hex: str = Field(..., description="Resolved hex color for the symbolic color name")
    parent_id: Optional[str] = None
    order: float
    child_order: int = 0
    is_inbox_project: bool = False
    collapsed: bool = False
    shared: bool = False
    view_style: str = "list"
    sections: List[SectionView] = Field(default_factory=list)
    tasks: List[TaskNode] = Field(
        default_factory=list,
        description="All root tasks in section order (same objects as in sections)",
    )
    task_count: int = Field(0, description="Visible tasks in this project, subtasks included")


class TransformedSnapshot(BaseModel):
    """Pipeline output: ordered projects plus the filtered labels."""

    projects: List[ProjectView] = Field(default_factory=list)
    labels: List[TodoistLabel] = Field(default_factory=list)


class TasksSnapshot(TransformedSnapshot):
    """Serving envelope for a transformed snapshot."""

    sync_token: Optional[str] = Field(None, alias="syncToken")
    fetched_at: datetime = Field(..., alias="fetchedAt")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
