from utils.production_tracker.filters import TrackerFilterValues
from utils.production_tracker.selection import (
    TrackerSelection,
    reconcile_filter_selection,
    reduce_selection,
)


def test_project_then_task_computes_target(projects) -> None:
    selection = reduce_selection(TrackerSelection(), "project_id", 1, projects, default_tenure=1)
    assert selection == TrackerSelection(project_id="1")

    selection = reduce_selection(selection, "task_id", 10, projects, default_tenure=1)
    assert selection.task_id == "10"
    assert selection.base_target == 50.0
    assert selection.is_complete


def test_agent_change_recomputes_target_from_tenure(projects, agents) -> None:
    selection = TrackerSelection(project_id="1", task_id="10")

    selection = reduce_selection(selection, "agent_id", 7, projects, agents)
    assert selection.base_target == 75.0

    selection = reduce_selection(selection, "agent_id", "8", projects, agents)
    assert selection.base_target == 25.0


def test_project_change_clears_task_not_in_project(projects, agents) -> None:
    selection = TrackerSelection(project_id="1", task_id="10", agent_id="7", base_target=75.0)

    selection = reduce_selection(selection, "project_id", 2, projects, agents)

    assert selection.project_id == "2"
    assert selection.task_id is None
    assert selection.base_target is None
    assert selection.agent_id == "7"


def test_project_change_keeps_task_that_still_belongs(projects, agents) -> None:
    selection = TrackerSelection(project_id="1", task_id="10", agent_id="7", base_target=1.0)
    selection = reduce_selection(selection, "project_id", "1", projects, agents)
    assert selection.task_id == "10"
    assert selection.base_target == 75.0


def test_missing_tenure_leaves_target_empty(projects) -> None:
    selection = TrackerSelection(project_id="2")
    selection = reduce_selection(selection, "task_id", 20, projects)
    assert selection.task_id == "20"
    assert selection.base_target is None
    assert not selection.is_complete


def test_reset_and_unknown_field(projects) -> None:
    selection = TrackerSelection(project_id="1", task_id="10", base_target=50.0)

    assert reduce_selection(selection, "reset", None, projects) == TrackerSelection()
    assert reduce_selection(selection, "shift", "day", projects) is selection


def test_reducer_does_not_modify_input(projects, agents) -> None:
    selection = TrackerSelection(project_id="1", task_id="10", agent_id="7", base_target=75.0)
    reduce_selection(selection, "project_id", 2, projects, agents)
    assert selection == TrackerSelection(project_id="1", task_id="10", agent_id="7", base_target=75.0)


def test_filter_task_cleared_when_not_offered() -> None:
    filters = TrackerFilterValues(project_id=2, task_id=10)

    cleared = reconcile_filter_selection(filters, [{"task_id": 20}])
    kept = reconcile_filter_selection(filters, [{"task_id": "10"}])

    assert cleared.task_id is None
    assert cleared.project_id == 2
    assert kept is filters
