from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from cellarpilot.services.fermentation_profiles import resolve_fermentation_profile

RecommendationKind = Literal["warning", "info", "success"]
RecommendationPriority = Literal["high", "medium", "low"]
SuggestedAction = Literal["log", "nutrient", "deviation", "intervention"]
EventType = Literal["nutrient", "deviation", "intervention", "oxygen"]

PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}

ACTIVE_BRIX_THRESHOLD = 5.0
STUCK_AFTER_DAYS = 14
NOT_STARTING_AFTER_DAYS = 7
NOT_STARTING_MIN_DROP = 3.0
SLOWING_MIN_DAILY_DROP = 0.5
SLOWING_AFTER_DAYS = 3
GENERIC_HIGH_TEMP_F = 90.0
LOG_STALE_DAYS = 2
PRESS_READY_MAX_BRIX = 2.0
PRESS_READY_MIN_BRIX = -2.0
H2S_KEYWORDS = ("h2s", "rotten egg", "sulfur")
H2S_NOTES_WINDOW = 3


@dataclass(frozen=True)
class FermentationState:
    days_fermenting: int
    current_brix: float | None = None
    initial_brix: float | None = None
    current_temp_f: float | None = None
    selected_profile: str | None = None


@dataclass(frozen=True)
class LogEntry:
    log_date: datetime
    brix: float | None = None
    temp_f: float | None = None
    notes: str | None = None
    work_performed: tuple[str, ...] = ()


@dataclass(frozen=True)
class InterventionEvent:
    event_type: EventType
    event_date: datetime
    resolved: bool = False


@dataclass(frozen=True)
class Recommendation:
    kind: RecommendationKind
    priority: RecommendationPriority
    title: str
    message: str
    suggestions: tuple[str, ...] = field(default_factory=tuple)
    suggested_action: SuggestedAction | None = None


@dataclass(frozen=True)
class _AdvisoryContext:
    state: FermentationState
    logs: Sequence[LogEntry]
    events: Sequence[InterventionEvent]
    now: datetime


_Rule = Callable[[_AdvisoryContext], Recommendation | None]


def generate_recommendations(
    state: FermentationState,
    logs: Sequence[LogEntry],
    events: Sequence[InterventionEvent],
    *,
    now: datetime,
) -> list[Recommendation]:
    """Evaluate every advisory rule against a fermentation snapshot.

    ``logs`` and ``events`` must already be ordered newest-first. Each rule
    yields at most one recommendation and no rule suppresses another. The
    result is stable-sorted by priority, so rules of equal priority keep the
    order in which they are declared in ``_RULES``.
    """
    context = _AdvisoryContext(state=state, logs=logs, events=events, now=now)

    recommendations: list[Recommendation] = []
    for rule in _RULES:
        recommendation = rule(context)
        if recommendation is not None:
            recommendations.append(recommendation)

    return sorted(recommendations, key=lambda item: PRIORITY_RANK[item.priority])


def _stuck_fermentation(context: _AdvisoryContext) -> Recommendation | None:
    state = context.state
    if state.current_brix is None:
        return None
    if state.current_brix <= ACTIVE_BRIX_THRESHOLD or state.days_fermenting <= STUCK_AFTER_DAYS:
        return None

    return Recommendation(
        kind="warning",
        priority="high",
        title="Stuck Fermentation",
        message=(
            f"Brix is still {state.current_brix:g}° after {state.days_fermenting} days. "
            "Fermentation has likely stalled."
        ),
        suggestions=(
            "Check must temperature and warm to 70-75°F if too cool",
            "Add rehydration nutrient such as Go-Ferm Protect",
            "Prepare a restart culture with EC-1118",
            "Test YAN and VA before re-inoculating",
            "Gently rouse the lees to resuspend yeast",
        ),
        suggested_action="deviation",
    )


def _fermentation_not_starting(context: _AdvisoryContext) -> Recommendation | None:
    state = context.state
    if state.current_brix is None or state.initial_brix is None:
        return None
    if state.current_brix <= ACTIVE_BRIX_THRESHOLD:
        return None

    drop = state.initial_brix - state.current_brix
    if drop >= NOT_STARTING_MIN_DROP or state.days_fermenting <= NOT_STARTING_AFTER_DAYS:
        return None

    return Recommendation(
        kind="warning",
        priority="high",
        title="Critical: Fermentation Not Starting",
        message=(
            f"Only {drop:.1f}° Brix drop in {state.days_fermenting} days. "
            "Yeast may not have taken hold."
        ),
        suggestions=(
            "Verify the yeast was rehydrated and pitched correctly",
            "Check must temperature is above 60°F",
            "Measure free SO2, excessive levels inhibit yeast",
            "Re-inoculate with a vigorous strain such as EC-1118",
        ),
        suggested_action="deviation",
    )


def _fermentation_slowing(context: _AdvisoryContext) -> Recommendation | None:
    state = context.state
    if len(context.logs) < 2 or state.current_brix is None:
        return None
    if state.current_brix <= ACTIVE_BRIX_THRESHOLD:
        return None
    if state.days_fermenting <= SLOWING_AFTER_DAYS or state.days_fermenting > STUCK_AFTER_DAYS:
        return None

    latest, previous = context.logs[0], context.logs[1]
    if latest.brix is None or previous.brix is None:
        return None

    brix_drop = previous.brix - latest.brix
    if brix_drop >= SLOWING_MIN_DAILY_DROP:
        return None

    return Recommendation(
        kind="warning",
        priority="high",
        title="Fermentation Slowing",
        message=(
            f"Brix dropped only {brix_drop:.1f}° since the previous reading "
            f"while still at {state.current_brix:g}°."
        ),
        suggestions=(
            "Add yeast nutrient such as Fermaid K",
            "Check temperature is within the target range",
            "Perform a pumpover or punchdown to aerate",
            "Take a fresh Brix reading to confirm the trend",
        ),
        suggested_action="nutrient",
    )


def _temperature(context: _AdvisoryContext) -> Recommendation | None:
    state = context.state
    if state.current_temp_f is None:
        return None

    temp = state.current_temp_f
    profile = resolve_fermentation_profile(state.selected_profile)
    if profile is None:
        if temp <= GENERIC_HIGH_TEMP_F:
            return None
        return Recommendation(
            kind="warning",
            priority="high",
            title="High Temperature Alert",
            message=f"Must temperature is {temp:g}°F, above {GENERIC_HIGH_TEMP_F:g}°F. Yeast may be stressed.",
            suggestions=(
                "Turn on or increase glycol cooling",
                "Perform a pumpover to release heat",
                "Move the vessel to a cooler area",
                "Check again in 2-4 hours",
            ),
            suggested_action="intervention",
        )

    if temp > profile.temp_range.max_f:
        return Recommendation(
            kind="warning",
            priority="high",
            title="Temperature Too High",
            message=(
                f"Must temperature {temp:g}°F is above the {profile.name} range "
                f"({profile.temp_range.min_f:g}-{profile.temp_range.max_f:g}°F)."
            ),
            suggestions=(
                "Increase glycol cooling or lower the jacket setpoint",
                "Perform a pumpover to release heat",
                "Add dry ice to the cap for quick cooling",
                "Monitor for aroma loss and yeast stress",
            ),
            suggested_action="intervention",
        )
    if temp < profile.temp_range.min_f:
        return Recommendation(
            kind="warning",
            priority="medium",
            title="Temperature Too Low",
            message=(
                f"Must temperature {temp:g}°F is below the {profile.name} range "
                f"({profile.temp_range.min_f:g}-{profile.temp_range.max_f:g}°F)."
            ),
            suggestions=(
                "Reduce cooling or raise the jacket setpoint",
                "Wrap the vessel or use a heat belt",
                "Move the vessel to a warmer area",
            ),
            suggested_action="intervention",
        )
    return None


def _nutrient_timing(context: _AdvisoryContext) -> Recommendation | None:
    state = context.state
    if state.current_brix is None or not state.initial_brix:
        return None
    if state.current_brix <= ACTIVE_BRIX_THRESHOLD:
        return None

    drop_pct = (state.initial_brix - state.current_brix) / state.initial_brix * 100
    nutrient_events = [event for event in context.events if event.event_type == "nutrient"]

    if 25 <= drop_pct < 40 and not nutrient_events:
        return Recommendation(
            kind="info",
            priority="medium",
            title="Nutrient Addition Recommended",
            message=f"Sugar is {drop_pct:.0f}% depleted, around the 1/3 mark. This is the ideal time for the first nutrient addition.",
            suggestions=(
                "Add Fermaid K at 25 g/hL",
                "Dissolve nutrient in water before adding",
                "Mix gently during a pumpover",
            ),
            suggested_action="nutrient",
        )

    if 55 <= drop_pct < 70 and len(nutrient_events) == 1:
        days_since = _days_between(nutrient_events[0].event_date, context.now)
        return Recommendation(
            kind="info",
            priority="medium",
            title="Second Nutrient Addition",
            message=(
                f"Sugar is {drop_pct:.0f}% depleted, around the 2/3 mark. "
                f"The last nutrient addition was {days_since} days ago."
            ),
            suggestions=(
                "Add Fermaid K at 15-25 g/hL",
                "Avoid DAP this late in fermentation",
                "Mix gently during a pumpover",
            ),
            suggested_action="nutrient",
        )
    return None


def _log_staleness(context: _AdvisoryContext) -> Recommendation | None:
    if context.logs:
        hours_since_log = _hours_between(context.logs[0].log_date, context.now)
        days_since_log = hours_since_log / 24
        if days_since_log < LOG_STALE_DAYS:
            return None
        return Recommendation(
            kind="warning",
            priority="medium",
            title="Log Reminder",
            message=f"No log entry in {int(days_since_log)} days. Daily readings keep fermentation on track.",
            suggestions=(
                "Take a Brix and temperature reading",
                "Record cap condition and aroma",
                "Note any cellar work performed",
            ),
            suggested_action="log",
        )

    if context.state.days_fermenting > 0:
        return Recommendation(
            kind="warning",
            priority="medium",
            title="No Logs Recorded",
            message=f"Fermenting for {context.state.days_fermenting} days without any log entries.",
            suggestions=(
                "Record today's Brix and temperature",
                "Establish a daily logging routine",
                "Note the starting chemistry if available",
            ),
            suggested_action="log",
        )
    return None


def _press_readiness(context: _AdvisoryContext) -> Recommendation | None:
    brix = context.state.current_brix
    if brix is None or not PRESS_READY_MIN_BRIX < brix <= PRESS_READY_MAX_BRIX:
        return None

    if brix <= 0:
        message = f"Brix is {brix:g}°. Fermentation appears complete and the wine is dry."
    else:
        message = f"Brix is {brix:g}°. Fermentation is nearly complete."

    return Recommendation(
        kind="success",
        priority="medium",
        title="Approaching Press Readiness",
        message=message,
        suggestions=(
            "Taste for residual sugar and tannin extraction",
            "Confirm dryness with a Clinitest or residual sugar panel",
            "Schedule the press and prepare receiving vessels",
            "Plan malolactic inoculation if desired",
        ),
        suggested_action=None,
    )


def _h2s_in_notes(context: _AdvisoryContext) -> Recommendation | None:
    for entry in context.logs[:H2S_NOTES_WINDOW]:
        notes = (entry.notes or "").lower()
        if any(keyword in notes for keyword in H2S_KEYWORDS):
            break
    else:
        return None

    return Recommendation(
        kind="warning",
        priority="high",
        title="H₂S Detected in Recent Notes",
        message="Recent log notes mention sulfur or rotten egg aromas. Address H₂S before it becomes fixed.",
        suggestions=(
            "Aerate with a splash rack or vigorous pumpover",
            "Add complex yeast nutrient if sugar remains",
            "Run a copper sulfate bench trial",
            "Check YAN levels",
        ),
        suggested_action="deviation",
    )


_RULES: tuple[_Rule, ...] = (
    _stuck_fermentation,
    _fermentation_not_starting,
    _fermentation_slowing,
    _temperature,
    _nutrient_timing,
    _log_staleness,
    _press_readiness,
    _h2s_in_notes,
)


def as_naive_utc(value: datetime) -> datetime:
    """Drop tzinfo after converting aware values to UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _hours_between(earlier: datetime, later: datetime) -> float:
    return (as_naive_utc(later) - as_naive_utc(earlier)).total_seconds() / 3600


def _days_between(earlier: datetime, later: datetime) -> int:
    return int(_hours_between(earlier, later) // 24)
