from datetime import datetime, timedelta, timezone

import pytest

from cellarpilot.services.fermentation_advisor import (
    PRIORITY_RANK,
    FermentationState,
    InterventionEvent,
    LogEntry,
    as_naive_utc,
    generate_recommendations,
)

NOW = datetime(2026, 10, 1, 12, 0)


def _titles(state: FermentationState, logs=(), events=()) -> list[str]:
    return [item.title for item in generate_recommendations(state, list(logs), list(events), now=NOW)]


def _recent_log(brix: float | None = None, notes: str | None = None, hours_ago: float = 1) -> LogEntry:
    return LogEntry(log_date=NOW - timedelta(hours=hours_ago), brix=brix, notes=notes)


def test_no_data_yields_no_recommendations() -> None:
    assert generate_recommendations(FermentationState(days_fermenting=0), [], [], now=NOW) == []


def test_missing_readings_only_trigger_log_rules() -> None:
    assert _titles(FermentationState(days_fermenting=20)) == ["No Logs Recorded"]


def test_stuck_fermentation_without_critical_when_sugar_dropped() -> None:
    state = FermentationState(days_fermenting=20, current_brix=10, initial_brix=24)

    titles = _titles(state)

    assert titles == ["Stuck Fermentation", "No Logs Recorded"]


def test_stuck_and_critical_fire_together() -> None:
    state = FermentationState(days_fermenting=20, current_brix=10, initial_brix=12)

    titles = _titles(state)

    assert titles == ["Stuck Fermentation", "Critical: Fermentation Not Starting", "No Logs Recorded"]


def test_critical_not_starting_requires_more_than_seven_days() -> None:
    logs = [_recent_log(brix=22)]

    assert _titles(FermentationState(days_fermenting=7, current_brix=22, initial_brix=23), logs) == []
    assert _titles(FermentationState(days_fermenting=8, current_brix=22, initial_brix=23), logs) == [
        "Critical: Fermentation Not Starting"
    ]


def test_recommendations_are_sorted_by_priority_and_keep_rule_order() -> None:
    state = FermentationState(days_fermenting=20, current_brix=10, initial_brix=12, current_temp_f=95)

    recommendations = generate_recommendations(state, [], [], now=NOW)

    assert [item.title for item in recommendations] == [
        "Stuck Fermentation",
        "Critical: Fermentation Not Starting",
        "High Temperature Alert",
        "No Logs Recorded",
    ]
    ranks = [PRIORITY_RANK[item.priority] for item in recommendations]
    assert ranks == sorted(ranks)


def test_medium_rule_declared_first_still_sorts_after_high() -> None:
    state = FermentationState(days_fermenting=5, current_temp_f=45, selected_profile="cool_white")
    logs = [_recent_log(notes="Strong sulfur note on the nose")]

    recommendations = generate_recommendations(state, logs, [], now=NOW)

    assert [(item.title, item.priority) for item in recommendations] == [
        ("H₂S Detected in Recent Notes", "high"),
        ("Temperature Too Low", "medium"),
    ]


def test_fermentation_slowing_between_readings() -> None:
    state = FermentationState(days_fermenting=6, current_brix=12, initial_brix=24)
    logs = [
        LogEntry(log_date=NOW - timedelta(hours=2), brix=12.0),
        LogEntry(log_date=NOW - timedelta(days=1), brix=12.3),
    ]

    recommendations = generate_recommendations(state, logs, [], now=NOW)

    assert [item.title for item in recommendations] == ["Fermentation Slowing"]
    assert recommendations[0].suggested_action == "nutrient"


def test_fermentation_slowing_defers_to_stuck_after_two_weeks() -> None:
    state = FermentationState(days_fermenting=15, current_brix=12, initial_brix=24)
    logs = [
        LogEntry(log_date=NOW - timedelta(hours=2), brix=12.0),
        LogEntry(log_date=NOW - timedelta(days=1), brix=12.3),
    ]

    titles = _titles(state, logs)

    assert "Stuck Fermentation" in titles
    assert "Fermentation Slowing" not in titles


@pytest.mark.parametrize(
    ("latest_brix", "previous_brix"),
    [(12.0, None), (None, 12.3), (12.0, 13.0)],
)
def test_fermentation_slowing_skips_unknown_or_healthy_trend(
    latest_brix: float | None,
    previous_brix: float | None,
) -> None:
    state = FermentationState(days_fermenting=6, current_brix=12, initial_brix=24)
    logs = [
        LogEntry(log_date=NOW - timedelta(hours=2), brix=latest_brix),
        LogEntry(log_date=NOW - timedelta(days=1), brix=previous_brix),
    ]

    assert "Fermentation Slowing" not in _titles(state, logs)


@pytest.mark.parametrize(
    ("profile", "temp_f", "expected"),
    [
        ("cool_white", 65, [("Temperature Too High", "high")]),
        ("cool_white", 45, [("Temperature Too Low", "medium")]),
        ("cool_white", 55, []),
        ("cool_white", 60, []),
        ("warm_red", 92, [("Temperature Too High", "high")]),
        (None, 95, [("High Temperature Alert", "high")]),
        (None, 90, []),
        (None, 40, []),
        ("unknown_style", 95, [("High Temperature Alert", "high")]),
    ],
)
def test_temperature_rules(profile: str | None, temp_f: float, expected: list[tuple[str, str]]) -> None:
    state = FermentationState(days_fermenting=0, current_temp_f=temp_f, selected_profile=profile)

    recommendations = generate_recommendations(state, [], [], now=NOW)

    assert [(item.title, item.priority) for item in recommendations] == expected


def test_first_nutrient_addition_at_one_third_depletion() -> None:
    state = FermentationState(days_fermenting=3, current_brix=17, initial_brix=24)
    logs = [_recent_log(brix=17)]

    recommendations = generate_recommendations(state, logs, [], now=NOW)

    assert [item.title for item in recommendations] == ["Nutrient Addition Recommended"]
    assert recommendations[0].kind == "info"
    assert recommendations[0].suggested_action == "nutrient"


def test_first_nutrient_addition_skipped_when_already_added() -> None:
    state = FermentationState(days_fermenting=3, current_brix=17, initial_brix=24)
    events = [InterventionEvent(event_type="nutrient", event_date=NOW - timedelta(days=1))]

    assert _titles(state, [_recent_log(brix=17)], events) == []


@pytest.mark.parametrize(("current_brix", "fires"), [(15, True), (12, False)])
def test_first_nutrient_window_bounds(current_brix: float, fires: bool) -> None:
    state = FermentationState(days_fermenting=3, current_brix=current_brix, initial_brix=20)

    titles = _titles(state, [_recent_log(brix=current_brix)])

    assert ("Nutrient Addition Recommended" in titles) is fires


def test_second_nutrient_addition_needs_exactly_one_prior_addition() -> None:
    state = FermentationState(days_fermenting=3, current_brix=9, initial_brix=24)
    logs = [_recent_log(brix=9)]
    first_addition = InterventionEvent(event_type="nutrient", event_date=NOW - timedelta(days=4))
    deviation = InterventionEvent(event_type="deviation", event_date=NOW - timedelta(days=2), resolved=True)

    recommendations = generate_recommendations(state, logs, [deviation, first_addition], now=NOW)

    assert [item.title for item in recommendations] == ["Second Nutrient Addition"]
    assert "4 days ago" in recommendations[0].message

    assert _titles(state, logs, []) == []
    assert _titles(state, logs, [first_addition, first_addition]) == []


def test_nutrient_timing_skips_zero_initial_brix() -> None:
    state = FermentationState(days_fermenting=3, current_brix=9, initial_brix=0)

    assert _titles(state, [_recent_log(brix=9)]) == []


@pytest.mark.parametrize(("hours_ago", "fires"), [(48, True), (47, False)])
def test_log_reminder_after_two_days(hours_ago: float, fires: bool) -> None:
    state = FermentationState(days_fermenting=5)
    logs = [LogEntry(log_date=NOW - timedelta(hours=hours_ago))]

    recommendations = generate_recommendations(state, logs, [], now=NOW)

    assert ([item.title for item in recommendations] == ["Log Reminder"]) is fires
    if fires:
        assert recommendations[0].suggested_action == "log"


@pytest.mark.parametrize(
    ("brix", "fires"),
    [(2, True), (2.01, False), (-2, False), (-1.99, True), (0, True), (1.5, True)],
)
def test_press_readiness_bounds(brix: float, fires: bool) -> None:
    titles = _titles(FermentationState(days_fermenting=0, current_brix=brix))

    assert ("Approaching Press Readiness" in titles) is fires


def test_press_readiness_message_distinguishes_dry_from_nearly_done() -> None:
    dry = generate_recommendations(FermentationState(days_fermenting=0, current_brix=-0.5), [], [], now=NOW)
    nearly = generate_recommendations(FermentationState(days_fermenting=0, current_brix=1.5), [], [], now=NOW)

    assert dry[0].kind == "success"
    assert "dry" in dry[0].message
    assert "nearly complete" in nearly[0].message
    assert dry[0].suggested_action is None


@pytest.mark.parametrize(
    ("note", "fires"),
    [
        ("Rotten Egg smell noted", True),
        ("ROTTEN EGG", True),
        ("slight h2s after punchdown", True),
        ("Sulfur on the nose", True),
        ("Bright cherry, healthy cap", False),
        (None, False),
    ],
)
def test_h2s_detection_is_case_insensitive(note: str | None, fires: bool) -> None:
    titles = _titles(FermentationState(days_fermenting=1), [_recent_log(notes=note)])

    assert ("H₂S Detected in Recent Notes" in titles) is fires


def test_h2s_detection_only_scans_three_newest_notes() -> None:
    logs = [
        _recent_log(notes="fine", hours_ago=1),
        _recent_log(notes="fine", hours_ago=2),
        _recent_log(notes="fine", hours_ago=3),
        _recent_log(notes="rotten egg", hours_ago=4),
    ]

    assert _titles(FermentationState(days_fermenting=1), logs) == []


def test_every_recommendation_carries_suggestions() -> None:
    state = FermentationState(days_fermenting=20, current_brix=10, initial_brix=12, current_temp_f=95)
    logs = [_recent_log(notes="h2s", hours_ago=60)]

    recommendations = generate_recommendations(state, logs, [], now=NOW)

    assert recommendations
    for item in recommendations:
        assert 3 <= len(item.suggestions) <= 6


def test_generate_recommendations_is_idempotent() -> None:
    state = FermentationState(days_fermenting=6, current_brix=12, initial_brix=24, current_temp_f=82, selected_profile="cool_red")
    logs = [
        LogEntry(log_date=NOW - timedelta(hours=50), brix=12.0, notes="sulfur"),
        LogEntry(log_date=NOW - timedelta(days=3), brix=12.2),
    ]
    events = [InterventionEvent(event_type="nutrient", event_date=NOW - timedelta(days=4))]

    first = generate_recommendations(state, logs, events, now=NOW)
    second = generate_recommendations(state, logs, events, now=NOW)

    assert first == second
    assert first


def test_as_naive_utc_converts_aware_values() -> None:
    pacific = timezone(timedelta(hours=-7))

    assert as_naive_utc(datetime(2026, 10, 1, 5, 0, tzinfo=pacific)) == NOW
    assert as_naive_utc(NOW) is NOW


def test_log_staleness_compares_aware_log_dates_in_utc() -> None:
    pacific = timezone(timedelta(hours=-7))
    logs = [LogEntry(log_date=datetime(2026, 9, 29, 5, 0, tzinfo=pacific))]

    titles = _titles(FermentationState(days_fermenting=5), logs)

    assert titles == ["Log Reminder"]
