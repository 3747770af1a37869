from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

LabMetric = Literal["ph", "ta", "free_so2", "va"]
AlertLevel = Literal["error", "warning"]

# VA above (max - margin) is flagged before it crosses the limit.
VA_WARNING_MARGIN = 0.2
# Approximate g/hL of potassium metabisulfite per ppm of free SO2 short.
KMBS_G_PER_HL_PER_PPM = 0.67
# pH quoted in the free SO2 message when no reading is given.
ASSUMED_PH = 3.5


@dataclass(frozen=True)
class LabRanges:
    ph_min: float = 3.2
    ph_max: float = 3.8
    ph_ideal: str = "3.4-3.6"
    ta_min: float = 5.0
    ta_max: float = 8.0
    ta_ideal: str = "6-7 g/L"
    free_so2_min: float = 15.0
    free_so2_max: float = 50.0
    va_max: float = 0.8


DEFAULT_LAB_RANGES = LabRanges()


@dataclass(frozen=True)
class LabAlert:
    metric: LabMetric
    level: AlertLevel
    message: str
    action: str
    kmbs_g_per_hl: int | None = None


def lab_chemistry_alerts(
    *,
    ph: float | None = None,
    ta: float | None = None,
    free_so2: float | None = None,
    va: float | None = None,
    ranges: LabRanges = DEFAULT_LAB_RANGES,
) -> list[LabAlert]:
    """Flag out-of-range wine chemistry, at most one alert per metric.

    Alerts come back in metric order: pH, TA, free SO2, VA. A missing reading
    raises nothing. TA, free SO2 and VA readings of zero are treated as not
    measured. Free SO2 has no upper alert.
    """
    alerts = [
        _ph_alert(ph, ranges),
        _ta_alert(ta, ranges),
        _free_so2_alert(free_so2, ph, ranges),
        _va_alert(va, ranges),
    ]
    return [alert for alert in alerts if alert is not None]


def kmbs_addition_g_per_hl(free_so2: float, target_min: float) -> int:
    shortfall = (target_min - free_so2) * KMBS_G_PER_HL_PER_PPM
    return math.floor(shortfall + 0.5)


def _ph_alert(ph: float | None, ranges: LabRanges) -> LabAlert | None:
    if ph is None:
        return None
    if ph < ranges.ph_min:
        return LabAlert(
            metric="ph",
            level="error",
            message=f"pH too low ({ph:g}), target {ranges.ph_ideal}",
            action="Consider deacidification or malolactic fermentation",
        )
    if ph > ranges.ph_max:
        return LabAlert(
            metric="ph",
            level="warning",
            message=f"pH high ({ph:g}), target {ranges.ph_ideal}",
            action="Consider tartaric acid addition",
        )
    return None


def _ta_alert(ta: float | None, ranges: LabRanges) -> LabAlert | None:
    if not ta:
        return None
    if ta < ranges.ta_min:
        return LabAlert(
            metric="ta",
            level="warning",
            message=f"TA low ({ta:g} g/L), target {ranges.ta_ideal}",
            action="Consider tartaric acid addition",
        )
    if ta > ranges.ta_max:
        return LabAlert(
            metric="ta",
            level="warning",
            message=f"TA high ({ta:g} g/L), target {ranges.ta_ideal}",
            action="Consider cold stabilization or deacidification",
        )
    return None


def _free_so2_alert(free_so2: float | None, ph: float | None, ranges: LabRanges) -> LabAlert | None:
    if not free_so2 or free_so2 >= ranges.free_so2_min:
        return None

    addition = kmbs_addition_g_per_hl(free_so2, ranges.free_so2_min)
    quoted_ph = ph if ph else ASSUMED_PH
    return LabAlert(
        metric="free_so2",
        level="warning",
        message=f"Free SO₂ low ({free_so2:g} ppm) for pH {quoted_ph:g}",
        action=f"Consider addition of ~{addition} g/hL potassium metabisulfite",
        kmbs_g_per_hl=addition,
    )


def _va_alert(va: float | None, ranges: LabRanges) -> LabAlert | None:
    if not va:
        return None
    if va > ranges.va_max:
        return LabAlert(
            metric="va",
            level="error",
            message=f"VA too high ({va:g} g/L), max {ranges.va_max:g}",
            action="Monitor closely, consider filtration or sulfite addition",
        )
    if va > ranges.va_max - VA_WARNING_MARGIN:
        return LabAlert(
            metric="va",
            level="warning",
            message=f"VA elevated ({va:g} g/L)",
            action="Monitor closely, plan next rack/filter",
        )
    return None
