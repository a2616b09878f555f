"""Tests for section assembly."""

from todoview.engine.hierarchy import build_task_forest
from todoview.engine.sections import assemble_sections, live_sections_for


class TestLiveSections:
    """Test live_sections_for()."""

    def test_filters_and_orders(self, make_section):
        sections = [
            make_section(id="s2", order=2),
            make_section(id="s1", order=1),
            make_section(id="gone", order=0, is_deleted=True),
            make_section(id="old", order=0, is_archived=True),
            make_section(id="other", project_id="proj-2", order=0),
        ]
        assert [s.id for s in live_sections_for("proj-1", sections)] == ["s1", "s2"]

    def test_section_order_field_is_accepted(self, make_section):
        section = make_section(id="s", order=None, section_order=7)
        assert section.order == 7


class TestAssembleSections:
    """Test assemble_sections()."""

    def test_unsectioned_bucket_comes_first(self, make_item, make_section, now):
        items = [
            make_item(id="in-section", section_id="s1"),
            make_item(id="loose"),
        ]
        sections = [make_section(id="s1", name="Doing", order=1)]
        forest = build_task_forest(items, [], now)

        views, flat = assemble_sections("proj-1", forest, sections)

        assert [(v.id, v.name, v.order) for v in views] == [(None, None, -1), ("s1", "Doing", 1)]
        assert [t.id for t in flat] == ["loose", "in-section"]

    def test_unsectioned_bucket_precedes_negative_section_order(self, make_item, make_section, now):
        items = [
            make_item(id="in-section", section_id="s-neg"),
            make_item(id="loose"),
        ]
        sections = [
            make_section(id="s2", name="Later", order=2),
            make_section(id="s-neg", name="Pinned", order=-5),
        ]
        forest = build_task_forest(items, [], now)

        views, flat = assemble_sections("proj-1", forest, sections)

        assert [(v.id, v.order) for v in views] == [(None, -1), ("s-neg", -5), ("s2", 2)]
        assert [t.id for t in flat] == ["loose", "in-section"]

    def test_no_unsectioned_bucket_when_empty(self, make_item, make_section, now):
        forest = build_task_forest([make_item(id="a", section_id="s1")], [], now)
        views, _ = assemble_sections("proj-1", forest, [make_section(id="s1")])
        assert [v.id for v in views] == ["s1"]

    def test_empty_live_sections_are_kept(self, make_item, make_section, now):
        forest = build_task_forest([make_item(id="a", section_id="s1")], [], now)
        sections = [make_section(id="s1", order=1), make_section(id="s2", name="Empty", order=2)]

        views, _ = assemble_sections("proj-1", forest, sections)

        assert [v.id for v in views] == ["s1", "s2"]
        assert views[1].tasks == []
        assert views[1].task_count == 0

    def test_tasks_in_dead_sections_fall_back_to_unsectioned(self, make_item, make_section, now):
        items = [
            make_item(id="deleted-sec", section_id="gone", child_order=1),
            make_item(id="archived-sec", section_id="old", child_order=2),
            make_item(id="missing-sec", section_id="nowhere", child_order=3),
        ]
        sections = [
            make_section(id="gone", is_deleted=True),
            make_section(id="old", is_archived=True),
        ]
        forest = build_task_forest(items, [], now)

        views, flat = assemble_sections("proj-1", forest, sections)

        assert len(views) == 1
        assert views[0].id is None
        assert [t.id for t in flat] == ["deleted-sec", "archived-sec", "missing-sec"]

    def test_flat_tasks_follow_section_order(self, make_item, make_section, now):
        items = [
            make_item(id="late", section_id="s2", priority=4),
            make_item(id="early", section_id="s1", priority=1),
        ]
        sections = [make_section(id="s2", order=2), make_section(id="s1", order=1)]
        forest = build_task_forest(items, [], now)

        views, flat = assemble_sections("proj-1", forest, sections)

        assert [v.id for v in views] == ["s1", "s2"]
        assert [t.id for t in flat] == ["early", "late"]

    def test_task_count_includes_visible_subtasks(self, make_item, hours_ago, now):
        items = [
            make_item(id="parent"),
            make_item(id="child", parent_id="parent"),
        ]
        stale = make_item(id="stale", checked=True, completed_at=hours_ago(60))
        forest = build_task_forest(items, [stale], now)

        views, _ = assemble_sections("proj-1", forest, [])

        assert views[0].task_count == 2
        assert [t.id for t in views[0].tasks] == ["parent", "stale"]
