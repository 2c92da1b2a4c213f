import random

import pytest

from utils.production_tracker.metrics import (
    TrackerMetrics,
    agent_tenure,
    aggregate_totals,
    build_monthly_summary,
    compute_base_target,
    find_task,
    production_ceiling,
    tasks_for_project,
)


def test_base_target_is_task_target_times_tenure() -> None:
    assert compute_base_target({"task_target": 50}, 1.5) == 75.0


def test_base_target_rounds_to_two_decimals() -> None:
    assert compute_base_target({"task_target": 33.333}, 1.1) == 36.67


@pytest.mark.parametrize("task_target, tenure", [(50, 1.5), (33.333, 1.1), ("12.345", 0.7), (0.1, 3)])
def test_base_target_survives_single_record_totals(task_target, tenure) -> None:
    base = compute_base_target({"task_target": task_target}, tenure)
    entry = {"tenure_target": base, "production": 1, "billable_hours": 1}

    assert aggregate_totals([entry])["tenure_target"] == base


def test_base_target_falls_back_through_target_keys() -> None:
    assert compute_base_target({"task_target": 0, "per_hour_target": 40}, 1) == 40.0
    assert compute_base_target({"target": "12.5"}, 2) == 25.0
    assert compute_base_target({"task_name": "no target"}, 2) == 0.0


@pytest.mark.parametrize("task, tenure", [
    (None, 1.5),
    ({}, 1.5),
    ({"task_target": 50}, None),
    ({"task_target": 50}, 0),
    ({"task_target": 50}, "abc"),
    ("not a task", 1.0),
])
def test_base_target_missing_inputs_give_none(task, tenure) -> None:
    assert compute_base_target(task, tenure) is None


def test_production_ceiling_is_double_the_target() -> None:
    assert production_ceiling(75) == 150.0
    assert production_ceiling("12.345") == 24.69
    assert production_ceiling(None) is None


def test_totals_of_empty_input_are_zero() -> None:
    assert aggregate_totals([]) == {"tenure_target": 0.0, "production": 0.0, "billable_hours": 0.0}
    assert aggregate_totals(None) == {"tenure_target": 0.0, "production": 0.0, "billable_hours": 0.0}


def test_totals_count_missing_and_garbage_as_zero() -> None:
    records = [
        {"tenure_target": 10, "production": None, "billable_hours": 2},
        {"tenure_target": "20", "production": 5, "billable_hours": "abc"},
        {"tenure_target": None, "billable_hours": 8},
    ]
    assert aggregate_totals(records) == {"tenure_target": 30.0, "production": 5.0, "billable_hours": 10.0}


def test_totals_do_not_depend_on_record_order() -> None:
    values = [0.1, 0.2, 0.3, 1e-3, 123.456, 7.77, 0.01, 99.99] * 5
    records = [{"tenure_target": v, "production": v * 3, "billable_hours": v / 7} for v in values]
    expected = aggregate_totals(records)

    rng = random.Random(7)
    for _ in range(5):
        shuffled = records[:]
        rng.shuffle(shuffled)
        assert aggregate_totals(shuffled) == expected


def test_totals_of_fixture(trackers) -> None:
    totals = TrackerMetrics(trackers).calculate_totals()
    assert totals == {"tenure_target": 135.0, "production": 127.5, "billable_hours": 23.5}


def test_overview_counts_agents_by_normalized_id(trackers) -> None:
    overview = TrackerMetrics(trackers).calculate_overview_metrics()
    assert overview["entry_count"] == 4
    assert overview["agent_count"] == 2
    assert overview["achievement_percent"] == round(127.5 / 135 * 100, 1)


def test_overview_without_target_has_no_achievement() -> None:
    overview = TrackerMetrics([{"production": 5}]).calculate_overview_metrics()
    assert overview["achievement_percent"] is None


def test_monthly_summary_groups_and_sorts_by_month(trackers) -> None:
    records = trackers + [
        {"date_time": "2023-12-31T08:00:00Z", "tenure_target": 1, "production": 2, "billable_hours": 3},
    ]
    monthly = build_monthly_summary(records)

    assert list(monthly.columns) == ["year", "month", "month_name", "tenure_target", "production", "billable_hours"]
    assert monthly["year"].tolist() == [2023, 2024, 2024]
    assert monthly["month"].tolist() == [12, 1, 2]
    assert monthly["month_name"].tolist() == ["December", "January", "February"]
    assert monthly["production"].tolist() == [2.0, 105.5, 22.0]


def test_monthly_summary_skips_undated_entries(trackers) -> None:
    monthly = build_monthly_summary(trackers)
    # tracker 4 has no date_time
    assert monthly["tenure_target"].sum() == 125.0


def test_monthly_summary_buckets_in_configured_timezone() -> None:
    records = [{"date_time": "2024-01-31T23:30:00Z", "tenure_target": 5, "production": 4, "billable_hours": 1}]

    utc = build_monthly_summary(records, tz="UTC")
    kolkata = build_monthly_summary(records, tz="Asia/Kolkata")

    assert utc["month_name"].tolist() == ["January"]
    assert kolkata["month_name"].tolist() == ["February"]


def test_naive_timestamps_are_read_as_utc() -> None:
    records = [{"date_time": "2024-01-31 23:30:00", "production": 1}]
    assert build_monthly_summary(records, tz="Asia/Kolkata")["month"].tolist() == [2]


def test_single_record_month_matches_its_values() -> None:
    record = {"date_time": "2024-05-20T12:00:00Z", "tenure_target": 12.5, "production": 9.25, "billable_hours": 4}
    row = build_monthly_summary([record]).iloc[0]

    assert (row["year"], row["month"], row["month_name"]) == (2024, 5, "May")
    assert (row["tenure_target"], row["production"], row["billable_hours"]) == (12.5, 9.25, 4.0)


def test_monthly_summary_empty_and_undated_input() -> None:
    assert build_monthly_summary([]).empty
    assert build_monthly_summary([{"date_time": "not a date", "production": 3}]).empty


def test_aggregate_by_agent_merges_mixed_id_types(trackers) -> None:
    by_agent = TrackerMetrics(trackers).aggregate_by_agent()

    assert by_agent["user_id"].tolist() == ["7", "8"]
    assert by_agent["user_name"].tolist() == ["Asha", "Ravi"]
    assert by_agent["entries"].tolist() == [2, 2]
    assert by_agent["production"].tolist() == [105.5, 22.0]
    assert by_agent["achievement_percent"].tolist()[0] == round(105.5 / 105 * 100, 1)


def test_aggregate_by_project_sorted_by_production(trackers) -> None:
    by_project = TrackerMetrics(trackers).aggregate_by_project()
    assert by_project["project_name"].tolist() == ["Alpha", "Beta"]
    assert by_project["production"].tolist() == [102.0, 25.5]


def test_task_lookup_within_project(projects) -> None:
    assert [t["task_id"] for t in tasks_for_project(projects, "1")] == [10, 11]
    assert tasks_for_project(projects, 99) == []
    assert find_task(projects, 1, "10")["task_name"] == "Tagging"
    assert find_task(projects, 2, 10) is None


def test_agent_tenure_reads_either_key(agents) -> None:
    assert agent_tenure(agents[0]) == 1.5
    assert agent_tenure(agents[1]) == 0.5
    assert agent_tenure(None) is None
