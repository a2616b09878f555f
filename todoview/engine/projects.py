"""Project selection and ordering for todoview."""

from typing import Iterable, List

from todoview.engine.display import resolve_project_color
from todoview.engine.hierarchy import TaskForest
from todoview.engine.sections import assemble_sections
from todoview.engine.visibility import count_visible_tasks, has_visible_tasks
from todoview.models.todoist import TodoistLabel, TodoistProject, TodoistSection
from todoview.models.view import ProjectView


def select_projects(
    projects: Iterable[TodoistProject],
    sections: Iterable[TodoistSection],
    forest: TaskForest,
) -> List[ProjectView]:
    """Build the ordered list of projects to render.

    Deleted and archived projects are dropped, as are projects with nothing
    visible anywhere in their task tree. The Inbox comes first; the rest
    follow by ascending order.

    Args:
        projects: All projects of the snapshot
        sections: All sections of the snapshot
        forest: Task forest from build_task_forest

    Returns:
        Project views in display order
    """
    sections = list(sections)
    views: List[ProjectView] = []

    for project in projects:
        if project.is_deleted or project.is_archived:
            continue

        section_views, tasks = assemble_sections(project.id, forest, sections)
        if not has_visible_tasks(tasks):
            continue

        views.append(ProjectView(
            id=project.id,
            name=project.name,
            color=project.color,
            color_hex=resolve_project_color(project.color),
            parent_id=project.parent_id,
            order=project.order,
            child_order=project.child_order,
            is_inbox_project=project.is_inbox_project,
            collapsed=project.collapsed,
            shared=project.shared,
            view_style=project.view_style,
            sections=section_views,
            tasks=tasks,
            task_count=count_visible_tasks(tasks),
        ))

    return sorted(views, key=_project_sort_key)


def filter_labels(labels: Iterable[TodoistLabel]) -> List[TodoistLabel]:
    """Drop labels without a name."""
    return [label for label in labels if label.name]


def _project_sort_key(project: ProjectView) -> tuple:
    # Inbox is pinned first regardless of its order value.
    return (0 if project.is_inbox_project else 1, project.order)
