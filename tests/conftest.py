from typing import Any, Dict, List, Tuple

import pytest


@pytest.fixture
def trackers() -> List[Dict[str, Any]]:
    return [
        {
            "tracker_id": 1, "user_id": 7, "user_name": "Asha",
            "project_id": 1, "project_name": "Alpha", "task_id": 10, "task_name": "Tagging",
            "shift": "day", "date_time": "2024-01-10T09:00:00Z",
            "tenure_target": 75, "production": 80, "billable_hours": 8,
            "tracker_note": "", "tracker_file": None,
        },
        {
            "tracker_id": 2, "user_id": "7", "user_name": "Asha",
            "project_id": 2, "project_name": "Beta", "task_id": 20, "task_name": "Review",
            "shift": "night", "date_time": "2024-01-11T22:15:00Z",
            "tenure_target": 30, "production": 25.5, "billable_hours": 6,
            "tracker_note": "late batch", "tracker_file": "batch.xlsx",
        },
        {
            "tracker_id": 3, "user_id": 8, "user_name": "Ravi",
            "project_id": 1, "project_name": "Alpha", "task_id": 11, "task_name": "QA Pass",
            "shift": "day", "date_time": "2024-02-02T10:30:00Z",
            "tenure_target": 20, "production": 22, "billable_hours": 7.5,
            "tracker_note": None, "tracker_file": None,
        },
        {
            "tracker_id": 4, "user_id": 8, "user_name": "Ravi",
            "project_id": 1, "project_name": "Alpha", "task_id": 10, "task_name": "Tagging",
            "shift": "day", "date_time": None,
            "tenure_target": 10, "production": None, "billable_hours": "2",
            "tracker_note": None, "tracker_file": None,
        },
    ]


@pytest.fixture
def projects() -> List[Dict[str, Any]]:
    return [
        {
            "project_id": 1,
            "project_name": "Alpha",
            "tasks": [
                {"task_id": 10, "task_name": "Tagging", "task_target": 50},
                {"task_id": 11, "task_name": "QA Pass", "task_target": 0, "per_hour_target": 20},
            ],
        },
        {
            "project_id": 2,
            "project_name": "Beta",
            "tasks": [{"task_id": 20, "task_name": "Review", "target": "30"}],
        },
    ]


@pytest.fixture
def agents() -> List[Dict[str, Any]]:
    return [
        {"user_id": 7, "user_name": "Asha", "user_tenure": 1.5},
        {"user_id": 8, "user_name": "Ravi", "tenure": 0.5},
    ]


class FakeRequest:
    """Records calls made through TrackerQueries and replays canned bodies."""

    def __init__(self, responses: Dict[str, Any] = None, error: Exception = None):
        self.responses = responses or {}
        self.error = error
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def __call__(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        self.calls.append((method, path, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.get(path, {"data": []})

    def paths(self) -> List[str]:
        return [path for _, path, _ in self.calls]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_request() -> FakeRequest:
    return FakeRequest()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def billable_days() -> List[Any]:
    return [
        {
            "user_id": 7, "user_name": "Asha", "team_name": "Ops",
            "date_time": "2024-01-10T20:00:00Z", "assign_hours": 8, "billable_hours": "7.5",
            "qc_score": 90, "trackers_count_day": 3, "tenure_target": 75,
        },
        {
            "user_id": 8, "user_name": "Ravi", "team_name": "Ops",
            "work_date": "2024-01-10", "assigned_hours": "", "total_billable_hours_day": 0.1,
            "qc_score": None, "trackers_count_day": "2",
        },
        "not a row",
    ]
