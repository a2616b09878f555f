"""Section assembly for todoview.

Turns a project's root-task buckets into an ordered list of sections plus
the flattened task list. Unsectioned tasks come first, in a synthetic
section with no id or name.
"""

from typing import Iterable, List, Tuple

from todoview.engine.hierarchy import TaskForest
from todoview.engine.ordering import sort_tasks
from todoview.engine.visibility import count_visible_tasks
from todoview.models.constants import NO_SECTION, NO_SECTION_ORDER
from todoview.models.todoist import TodoistSection
from todoview.models.view import SectionView, TaskNode


def live_sections_for(project_id: str, sections: Iterable[TodoistSection]) -> List[TodoistSection]:
    """Get a project's non-deleted, non-archived sections in display order."""
    live = [
        s for s in sections
        if s.project_id == project_id and not s.is_deleted and not s.is_archived
    ]
    return sorted(live, key=lambda s: s.order)


def assemble_sections(
    project_id: str,
    forest: TaskForest,
    sections: Iterable[TodoistSection],
) -> Tuple[List[SectionView], List[TaskNode]]:
    """Assemble the sections and flattened task list of one project.

    Root tasks pointing at a section that is missing, deleted, archived or
    owned by another project fall back to the unsectioned group.

    Args:
        project_id: Project to assemble
        forest: Task forest from build_task_forest
        sections: All sections of the snapshot

    Returns:
        Tuple of (sections in display order, all root tasks in section order)
    """
    buckets = forest.roots_for(project_id)
    project_sections = live_sections_for(project_id, sections)
    live_ids = {s.id for s in project_sections}

    unsectioned: List[TaskNode] = []
    for section_key, tasks in buckets.items():
        if section_key == NO_SECTION or section_key not in live_ids:
            unsectioned.extend(tasks)

    section_views: List[SectionView] = []
    flat_tasks: List[TaskNode] = []

    if unsectioned:
        sorted_tasks = sort_tasks(unsectioned)
        section_views.append(SectionView(
            id=None,
            name=None,
            order=NO_SECTION_ORDER,
            tasks=sorted_tasks,
            task_count=count_visible_tasks(sorted_tasks),
        ))
        flat_tasks.extend(sorted_tasks)

    for section in project_sections:
        sorted_tasks = sort_tasks(buckets.get(section.id, []))
        section_views.append(SectionView(
            id=section.id,
            name=section.name,
            order=section.order,
            tasks=sorted_tasks,
            task_count=count_visible_tasks(sorted_tasks),
        ))
        flat_tasks.extend(sorted_tasks)

    return section_views, flat_tasks
