import json
from datetime import date

import pandas as pd
import pytest

from utils.api import ApiError
from utils.production_tracker.queries import LatestSnapshot, TrackerQueries


@pytest.fixture
def queries(fake_request, fake_clock) -> TrackerQueries:
    return TrackerQueries(
        user_id=7,
        token="tkn",
        cache={},
        request=fake_request,
        clock=fake_clock,
        ttl_seconds=300,
    )


def test_get_trackers_posts_range_and_returns_frame(queries, fake_request, trackers) -> None:
    fake_request.responses["/tracker/view"] = {
        "data": {"trackers": trackers, "month_summary": [{"month_name": "January"}]}
    }

    df = queries.get_trackers(date(2024, 1, 1), date(2024, 1, 31), project_id=1)

    method, path, kwargs = fake_request.calls[0]
    assert (method, path) == ("POST", "/tracker/view")
    assert kwargs["token"] == "tkn"
    assert kwargs["json"]["logged_in_user_id"] == 7
    assert kwargs["json"]["date_from"] == "2024-01-01"
    assert kwargs["json"]["date_to"] == "2024-01-31"
    assert kwargs["json"]["project_id"] == 1
    assert kwargs["json"]["device_id"] == queries.device_id
    assert df["tracker_id"].tolist() == [1, 2, 3, 4]
    assert isinstance(df, pd.DataFrame)


def test_get_trackers_defaults_to_today(queries, fake_request) -> None:
    fake_request.responses["/tracker/view"] = {"data": None}

    df = queries.get_trackers()

    payload = fake_request.calls[0][2]["json"]
    assert payload["date_from"] == payload["date_to"]
    assert df.empty


def test_dropdown_is_cached_until_ttl_expires(queries, fake_request, fake_clock, projects) -> None:
    fake_request.responses["/dropdown/get"] = {"data": projects}

    assert queries.get_projects_with_tasks() == projects
    fake_clock.advance(299)
    assert queries.get_projects_with_tasks() == projects
    assert fake_request.paths() == ["/dropdown/get"]

    fake_clock.advance(2)
    queries.get_projects_with_tasks()
    assert fake_request.paths() == ["/dropdown/get", "/dropdown/get"]
    assert fake_request.calls[0][2]["json"] == {
        "dropdown_type": "projects with tasks",
        "logged_in_user_id": 7,
    }


def test_dropdown_cache_is_keyed_by_type_and_project(queries, fake_request) -> None:
    queries.get_agents()
    queries.get_dropdown("agent", project_id=3)
    queries.get_dropdown("agent", use_cache=False)

    assert len(fake_request.calls) == 3
    assert set(queries.cache) == {"pt_dropdown_agent", "pt_dropdown_agent_3"}


def test_project_changes_invalidate_dropdowns(queries, fake_request) -> None:
    queries.get_agents()
    queries.create_project({"project_name": "Gamma", "project_team_id": [7, 8]})

    assert queries.cache == {}
    queries.get_agents()
    assert fake_request.paths() == ["/dropdown/get", "/project/create", "/dropdown/get"]


def test_add_tracker_sends_multipart_fields(queries, fake_request) -> None:
    upload = ("sheet.csv", b"a,b\n", "text/csv")
    queries.add_tracker(
        {"project_id": "1", "task_id": "10", "shift": "day", "production": 5, "tenure_target": 75.0, "tracker_note": " "},
        upload=upload,
    )

    _, path, kwargs = fake_request.calls[0]
    files = kwargs["files"]
    assert path == "/tracker/add"
    assert files["project_id"] == (None, "1")
    assert files["user_id"] == (None, "7")
    assert files["production"] == (None, "5")
    assert files["tenure_target"] == (None, "75.0")
    assert "tracker_note" not in files
    assert files["tracker_file"] == upload


def test_update_tracker_carries_base_target(queries, fake_request) -> None:
    queries.update_tracker(12, {"project_id": 1, "task_id": 10, "shift": "night", "user_id": 8, "production": 3, "base_target": 2.5})

    files = fake_request.calls[0][2]["files"]
    assert files["tracker_id"] == (None, "12")
    assert files["base_target"] == (None, "2.5")
    assert "tracker_file" not in files


def test_project_lists_are_sent_as_json_arrays(queries, fake_request) -> None:
    uploads = [("a.pdf", b"%PDF", "application/pdf"), ("b.pdf", b"%PDF", "application/pdf")]
    queries.update_project(5, {"project_name": "Alpha", "asst_project_manager_id": [3, 4]}, uploads)

    parts = fake_request.calls[0][2]["files"]
    fields = {name: value for name, value in parts if name != "file"}
    assert fields["project_id"] == (None, "5")
    assert json.loads(fields["asst_project_manager_id"][1]) == [3, 4]
    assert [value for name, value in parts if name == "file"] == uploads


def test_task_endpoints(queries, fake_request) -> None:
    queries.add_task({"project_id": 1, "task_name": "Tagging", "task_target": 12, "task_team_id": [7]})
    queries.delete_task(1, 10)

    add_files = fake_request.calls[0][2]["files"]
    assert add_files["task_team_id"] == (None, "[7]")
    assert add_files["device_type"] == (None, queries.device_type)

    method, path, kwargs = fake_request.calls[1]
    assert (method, path) == ("PUT", "/task/delete")
    assert kwargs["json"]["project_id"] == 1
    assert kwargs["json"]["task_id"] == 10


def test_save_daily_qc_omits_blank_values(queries, fake_request) -> None:
    queries.save_daily_qc(8, date(2024, 3, 5), assign_hours="7.5")

    assert fake_request.calls[0][1] == "/qc/temp-qc"
    assert fake_request.calls[0][2]["json"] == {"user_id": 8, "date": "2024-03-05", "assigned_hours": 7.5}


def test_api_errors_propagate(queries, fake_request) -> None:
    fake_request.error = ApiError("boom", code="NETWORK_ERROR")

    with pytest.raises(ApiError) as exc_info:
        queries.list_projects()
    assert exc_info.value.friendly_message == "Unable to connect. Please check your internet connection."


def test_latest_snapshot_discards_stale_results() -> None:
    snapshot = LatestSnapshot()

    first = snapshot.issue()
    second = snapshot.issue()

    assert snapshot.accept(second, "new")
    assert not snapshot.accept(first, "old")
    assert snapshot.value == "new"
    assert snapshot.latest_token == 2


def test_latest_snapshot_accepts_each_token_once() -> None:
    snapshot = LatestSnapshot()
    token = snapshot.issue()

    assert snapshot.accept(token, "a")
    assert not snapshot.accept(token, "b")
    assert snapshot.value == "a"


def test_failed_latest_fetch_clears_the_previous_range() -> None:
    snapshot = LatestSnapshot()
    first = snapshot.issue()
    snapshot.accept(first, "january")

    second = snapshot.issue()
    assert snapshot.discard(second)
    assert snapshot.value is None


def test_failure_of_an_older_fetch_keeps_the_newer_value() -> None:
    snapshot = LatestSnapshot()
    older = snapshot.issue()
    newer = snapshot.issue()
    snapshot.accept(newer, "february")

    assert not snapshot.discard(older)
    assert snapshot.value == "february"


def test_daily_billable_request(queries, fake_request) -> None:
    fake_request.responses["/tracker/view_daily"] = {"data": {"trackers": [{"user_id": 7}]}}

    rows = queries.get_daily_billable(date(2024, 1, 20), team_id=3, user_id=7)

    method, path, kwargs = fake_request.calls[0]
    assert (method, path) == ("POST", "/tracker/view_daily")
    assert kwargs["json"] == {"logged_in_user_id": 7, "month_year": "JAN2024", "team_id": 3, "user_id": 7}
    assert rows == [{"user_id": 7}]


def test_daily_billable_tolerates_missing_rows(queries, fake_request) -> None:
    fake_request.responses["/tracker/view_daily"] = {"data": []}

    assert queries.get_daily_billable(date(2024, 1, 20)) == []
    assert "team_id" not in fake_request.calls[0][2]["json"]


def test_monthly_billable_for_one_month(queries, fake_request) -> None:
    fake_request.responses["/user_monthly_tracker/list"] = {"data": [{"month_year": "FEB2024"}]}

    rows = queries.get_monthly_billable(date(2024, 2, 1), user_id=7)

    payload = fake_request.calls[0][2]["json"]
    assert payload == {"logged_in_user_id": 7, "month_year": "FEB2024", "user_id": 7}
    assert rows == [{"month_year": "FEB2024"}]


def test_monthly_billable_defaults_to_last_three_months(queries, fake_request, monkeypatch) -> None:
    monkeypatch.setattr("utils.production_tracker.queries.today_in", lambda tz="UTC": date(2024, 3, 15))

    queries.get_monthly_billable()

    payload = fake_request.calls[0][2]["json"]
    assert payload["date_from"] == "2024-01-01"
    assert payload["date_to"] == "2024-03-31"
    assert "month_year" not in payload


def test_list_users(queries, fake_request) -> None:
    fake_request.responses["/user/list"] = {"data": [{"user_id": 4}]}

    assert queries.list_users() == [{"user_id": 4}]
    payload = fake_request.calls[0][2]["json"]
    assert payload["user_id"] == "7"
    assert payload["device_type"] == queries.device_type


def test_deactivate_user_sends_multipart_flag(queries, fake_request) -> None:
    queries.set_user_active(12, False)

    method, path, kwargs = fake_request.calls[0]
    assert (method, path) == ("POST", "/user/update_user")
    assert kwargs["files"]["user_id"] == (None, "12")
    assert kwargs["files"]["is_active"] == (None, "0")


def test_assign_task_rewrites_task_team(queries, fake_request) -> None:
    task = {
        "project_id": 1, "task_id": 10, "task_name": "Tagging", "task_target": 50,
        "task_description": None, "task_team_id": "[8]", "important_columns": '["sku"]',
        "project_name": "Alpha",
    }

    queries.assign_task(task, 7, True)
    queries.assign_task({**task, "task_team_id": [7, 8]}, "7", False)

    assert fake_request.paths() == ["/task/update", "/task/update"]
    added = fake_request.calls[0][2]["files"]
    assert added["task_team_id"] == (None, "[8, 7]")
    assert added["important_columns"] == (None, '["sku"]')
    assert added["task_id"] == (None, "10")
    assert "task_description" not in added
    assert "project_name" not in added

    removed = fake_request.calls[1][2]["files"]
    assert removed["task_team_id"] == (None, "[8]")
