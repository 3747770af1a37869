from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal

from cellarpilot.schemas.fermentation import FermentationEventIn, FermentationLogIn, LotSnapshot
from cellarpilot.services.fermentation_advisor import (
    FermentationState,
    InterventionEvent,
    LogEntry,
    as_naive_utc,
)

FermentationStatus = Literal["unknown", "active", "finishing", "dry"]

_WHITE_VARIETAL_KEYWORDS = ("chardonnay", "sauvignon", "riesling", "pinot gris")
WHITE_TARGET_DAYS = 10
RED_TARGET_DAYS = 14


@dataclass(frozen=True)
class FermentationTimer:
    days_elapsed: int
    days_remaining: int
    percent_complete: float
    target_date: datetime
    is_overdue: bool
    is_complete: bool


def days_fermenting(
    fermentation_start_date: datetime | None,
    harvest_date: date | datetime | None,
    now: datetime,
) -> int:
    """Whole days since fermentation start, falling back to the harvest date."""
    started = fermentation_start_date or harvest_date
    if started is None:
        return 0
    if not isinstance(started, datetime):
        started = datetime.combine(started, datetime.min.time())

    elapsed = as_naive_utc(now) - as_naive_utc(started)
    return max(0, elapsed.days)


def fermentation_status(current_brix: float | None) -> FermentationStatus:
    if current_brix is None:
        return "unknown"
    if current_brix > 5:
        return "active"
    if current_brix > 0:
        return "finishing"
    return "dry"


def fermentation_timer(
    fermentation_start_date: datetime | None,
    target_days: int | None,
    now: datetime,
) -> FermentationTimer | None:
    if fermentation_start_date is None or not target_days:
        return None

    days_elapsed = days_fermenting(fermentation_start_date, None, now)
    days_remaining = target_days - days_elapsed
    return FermentationTimer(
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        percent_complete=round(min(days_elapsed / target_days * 100, 100.0), 1),
        target_date=fermentation_start_date + timedelta(days=target_days),
        is_overdue=days_remaining < 0,
        is_complete=days_remaining <= 0,
    )


def default_target_days(varietal: str | None) -> int:
    variety = (varietal or "").lower()
    if any(keyword in variety for keyword in _WHITE_VARIETAL_KEYWORDS):
        return WHITE_TARGET_DAYS
    return RED_TARGET_DAYS


def build_fermentation_state(
    lot: LotSnapshot,
    *,
    selected_profile: str | None,
    now: datetime,
) -> FermentationState:
    return FermentationState(
        days_fermenting=days_fermenting(lot.fermentation_start_date, lot.harvest_date, now),
        current_brix=lot.current_brix,
        initial_brix=lot.initial_brix,
        current_temp_f=lot.current_temp_f,
        selected_profile=selected_profile,
    )


def build_log_entries(rows: Iterable[FermentationLogIn]) -> list[LogEntry]:
    entries = [
        LogEntry(
            log_date=row.log_date,
            brix=row.brix,
            temp_f=row.temp_f,
            notes=row.notes,
            work_performed=tuple(row.work_performed or ()),
        )
        for row in rows
    ]
    return sorted(entries, key=lambda entry: as_naive_utc(entry.log_date), reverse=True)


def build_intervention_events(rows: Iterable[FermentationEventIn]) -> list[InterventionEvent]:
    events = [
        InterventionEvent(event_type=row.event_type, event_date=row.event_date, resolved=row.resolved)
        for row in rows
    ]
    return sorted(events, key=lambda event: as_naive_utc(event.event_date), reverse=True)
