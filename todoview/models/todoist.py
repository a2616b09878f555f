"""Todoist Sync API data models for todoview.

These mirror the upstream payloads closely. Fields the pipeline does not use
are ignored, and loosely-typed upstream values (numeric ids, out-of-range
priorities, missing orders) are normalized on the way in.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from todoview.models.constants import DEFAULT_PROJECT_COLOR, MAX_PRIORITY, MIN_PRIORITY


def _coerce_id(value: Any) -> Optional[str]:
    """Todoist ids are strings in v9, but older payloads and tests use ints."""
    if value is None or value == "":
        return None
    return str(value)


class TodoistDue(BaseModel):
    """Due date of a task.

    `datetime` is set only for tasks due at a precise time and takes
    precedence over `date` for ordering and display.
    """

    date: Optional[str] = Field(None, description="Calendar date (YYYY-MM-DD) or floating datetime")
    datetime: Optional[str] = Field(None, description="Precise due instant, if any")
    is_recurring: bool = Field(False, description="Whether the due date repeats")
    timezone: Optional[str] = Field(None, description="Timezone of a fixed due datetime")
    string: Optional[str] = Field(None, description="Free-text due string as typed by the user")
    lang: Optional[str] = Field(None, description="Language of the due string")


class TodoistItem(BaseModel):
    """A Todoist item (task), live or recently completed."""

    id: str = Field(..., description="Todoist item id")
    project_id: Optional[str] = Field(None, description="Owning project id")
    section_id: Optional[str] = Field(None, description="Owning section id (null when unsectioned)")
    parent_id: Optional[str] = Field(None, description="Parent item id (null for top-level items)")
    content: str = Field("", description="Task title")
    description: str = Field("", description="Task notes")
    priority: int = Field(MIN_PRIORITY, description="1 (normal) to 4 (urgent)")
    due: Optional[TodoistDue] = Field(None, description="Due date, if any")
    labels: List[str] = Field(default_factory=list, description="Label names")
    checked: bool = Field(False, description="Completion flag")
    is_deleted: bool = Field(False, description="Tombstone flag")
    child_order: int = Field(0, description="Position among siblings")
    added_at: Optional[str] = Field(None, description="Creation timestamp")
    completed_at: Optional[str] = Field(None, description="Completion timestamp")

    @field_validator("id", "project_id", "section_id", "parent_id", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _coerce_id(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, v):
        try:
            value = int(v)
        except (TypeError, ValueError):
            return MIN_PRIORITY
        return max(MIN_PRIORITY, min(MAX_PRIORITY, value))

    @field_validator("content", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @field_validator("labels", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

    @field_validator("child_order", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v if v is not None else 0


class TodoistProject(BaseModel):
    """A Todoist project."""

    id: str = Field(..., description="Todoist project id")
    name: str = Field("", description="Project name")
    color: str = Field(DEFAULT_PROJECT_COLOR, description="Symbolic Todoist color name")
    parent_id: Optional[str] = Field(None, description="Parent project id")
    order: Optional[float] = Field(None, description="Ordering key for the project list")
    child_order: int = Field(0, description="Position among sibling projects")
    is_inbox_project: bool = Field(False, description="Whether this is the user's Inbox")
    collapsed: bool = Field(False, description="Collapsed in the Todoist UI")
    shared: bool = Field(False, description="Shared with collaborators")
    view_style: str = Field("list", description="'list' or 'board'")
    is_deleted: bool = Field(False, description="Tombstone flag")
    is_archived: bool = Field(False, description="Archived flag")

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _coerce_id(v)

    @field_validator("color", mode="before")
    @classmethod
    def _default_color(cls, v):
        return v or DEFAULT_PROJECT_COLOR

    @field_validator("child_order", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v if v is not None else 0

    @model_validator(mode="after")
    def _default_order(self):
        # Sync v9 only reports child_order for projects.
        if self.order is None:
            self.order = float(self.child_order)
        return self


class TodoistSection(BaseModel):
    """A section inside a project."""

    id: str = Field(..., description="Todoist section id")
    project_id: Optional[str] = Field(None, description="Owning project id")
    name: str = Field("", description="Section name")
    order: Optional[float] = Field(None, description="Ordering key inside the project")
    is_deleted: bool = Field(False, description="Tombstone flag")
    is_archived: bool = Field(False, description="Archived flag")
    collapsed: bool = Field(False, description="Collapsed in the Todoist UI")

    @field_validator("id", "project_id", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _coerce_id(v)

    @model_validator(mode="before")
    @classmethod
    def _order_from_section_order(cls, data):
        # Sync v9 names the field `section_order`.
        if isinstance(data, dict) and data.get("order") is None and "section_order" in data:
            data = {**data, "order": data["section_order"]}
        return data

    @model_validator(mode="after")
    def _default_order(self):
        if self.order is None:
            self.order = 0.0
        return self


class TodoistLabel(BaseModel):
    """A personal label."""

    id: Optional[str] = Field(None, description="Todoist label id")
    name: Optional[str] = Field(None, description="Label name (empty labels are dropped)")
    color: str = Field(DEFAULT_PROJECT_COLOR, description="Symbolic Todoist color name")
    order: Optional[int] = Field(None, description="Label ordering key")
    is_favorite: bool = Field(False, description="Favorite flag")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _coerce_id(v)

    @field_validator("color", mode="before")
    @classmethod
    def _default_color(cls, v):
        return v or DEFAULT_PROJECT_COLOR


class TodoistSnapshot(BaseModel):
    """Full upstream state as of one fetch (never a delta)."""

    projects: List[TodoistProject] = Field(default_factory=list)
    sections: List[TodoistSection] = Field(default_factory=list)
    items: List[TodoistItem] = Field(default_factory=list)
    labels: List[TodoistLabel] = Field(default_factory=list)
    completed_items: List[TodoistItem] = Field(
        default_factory=list,
        description="Items completed inside the retention window, pre-annotated with completed_at",
    )
    sync_token: Optional[str] = Field(None, description="Sync token reported by the upstream")
