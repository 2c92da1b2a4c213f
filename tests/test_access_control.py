import pandas as pd
import pytest

from utils.production_tracker.access_control import AccessControl, Role, resolve_role


@pytest.mark.parametrize("role_id, role_name, expected", [
    (6, None, Role.AGENT),
    ("3", None, Role.PROJECT_MANAGER),
    (1.0, None, Role.SUPER_ADMIN),
    (None, "Super Admin", Role.SUPER_ADMIN),
    (None, "admin", Role.ADMIN),
    (None, "QA Agent", Role.QA_AGENT),
    (None, "Asst. Manager", Role.ASSISTANT_MANAGER),
    (None, "project_manager", Role.PROJECT_MANAGER),
    (99, "agent", Role.AGENT),
    (None, None, None),
    (None, "guest", None),
])
def test_resolve_role(role_id, role_name, expected) -> None:
    assert resolve_role(role_id, role_name) == expected


def test_navigation_per_role() -> None:
    assert AccessControl(Role.AGENT, 7).nav_items() == ["tracker", "billable_report"]
    assert AccessControl(Role.QA_AGENT, 5).nav_items() == ["tracker_report", "billable_report"]
    assert AccessControl(Role.ADMIN, 2).nav_items() == [
        "tracker_report", "billable_report", "manage_projects", "manage_users",
    ]
    assert AccessControl(None, 1).nav_items() == []


def test_team_column_only_for_top_roles() -> None:
    assert AccessControl(Role.PROJECT_MANAGER, 3).capabilities.can_view_team_column
    assert not AccessControl(Role.ASSISTANT_MANAGER, 4).capabilities.can_view_team_column
    assert not AccessControl(Role.QA_AGENT, 5).capabilities.can_manage_projects


def test_user_management_is_for_managers_only() -> None:
    for role in (Role.SUPER_ADMIN, Role.ADMIN, Role.PROJECT_MANAGER, Role.ASSISTANT_MANAGER):
        assert AccessControl(role, 1).can_access("manage_users")
    assert not AccessControl(Role.QA_AGENT, 5).can_access("manage_users")
    assert not AccessControl(Role.AGENT, 7).can_access("manage_users")


def test_from_user_uses_role_name_when_id_missing() -> None:
    access = AccessControl.from_user({"user_id": 7, "role_name": "Agent"})
    assert access.role == Role.AGENT
    assert access.role_label == "Agent"
    assert AccessControl.from_user(None).role_label == "Unknown"


def test_agent_deletes_own_entry_on_the_same_day_only() -> None:
    access = AccessControl(Role.AGENT, 7)
    tracker = {"user_id": "7", "date_time": "2024-03-05T09:00:00Z"}

    assert access.can_delete_tracker(tracker, now=pd.Timestamp("2024-03-05T23:59:00Z"))
    assert not access.can_delete_tracker(tracker, now=pd.Timestamp("2024-03-06T00:01:00Z"))


def test_agent_cannot_delete_others_or_undated_entries() -> None:
    access = AccessControl(Role.AGENT, 7)
    now = pd.Timestamp("2024-03-05T12:00:00Z")

    assert not access.can_delete_tracker({"user_id": 8, "date_time": "2024-03-05T09:00:00Z"}, now=now)
    assert not access.can_delete_tracker({"user_id": 7, "date_time": None}, now=now)


def test_same_day_window_follows_calendar_timezone() -> None:
    tracker = {"user_id": 7, "date_time": "2024-03-05T20:00:00Z"}
    now = pd.Timestamp("2024-03-06T05:00:00Z")

    assert not AccessControl(Role.AGENT, 7, tz="UTC").can_delete_tracker(tracker, now=now)
    assert AccessControl(Role.AGENT, 7, tz="Asia/Kolkata").can_delete_tracker(tracker, now=now)


def test_privileged_roles_delete_any_entry() -> None:
    old_entry = {"user_id": 8, "date_time": "2020-01-01T00:00:00Z"}
    for role in (Role.SUPER_ADMIN, Role.ADMIN, Role.PROJECT_MANAGER, Role.ASSISTANT_MANAGER, Role.QA_AGENT):
        assert AccessControl(role, 1).can_delete_tracker(old_entry)


def test_filter_dataframe_limits_agents_to_own_rows(trackers) -> None:
    df = pd.DataFrame(trackers)

    assert AccessControl(Role.AGENT, 8).filter_dataframe(df)["tracker_id"].tolist() == [3, 4]
    assert len(AccessControl(Role.QA_AGENT, 5).filter_dataframe(df)) == 4
    assert AccessControl(Role.AGENT, None).filter_dataframe(df).empty
