from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

LITERS_PER_GALLON = 3.785
ML_PER_GALLON = 3785.411784
# Potassium metabisulfite is ~57% SO2 by weight.
KMBS_CONVERSION_FACTOR = 570
GALLONS_PER_TON_WHITE = 150
GALLONS_PER_TON_RED = 160
GALLONS_PER_CASE = 2.38

ProcessingStyle = Literal["red", "white", "rose"]

_SO2_BY_PH: tuple[tuple[float, int], ...] = (
    (3.0, 30),
    (3.3, 40),
    (3.5, 50),
    (3.7, 60),
)
_SO2_HIGH_PH_PPM = 75


@dataclass(frozen=True)
class StemLoss:
    loss_lbs: float
    loss_pct: float


@dataclass(frozen=True)
class BottlingRunPlan:
    net_volume_gallons: float
    estimated_bottles: int
    estimated_cases: int
    estimated_pallets: int


@dataclass(frozen=True)
class BlendComponent:
    percentage: float
    varietal: str | None = None
    ph: float | None = None
    ta: float | None = None
    alcohol_pct: float | None = None
    brix: float | None = None


@dataclass(frozen=True)
class BlendChemistry:
    ph: float | None
    ta: float | None
    alcohol_pct: float | None
    brix: float | None
    component_count: int


def recommended_so2_ppm(ph: float | None) -> int | None:
    """Return the SO2 addition (ppm) for a must pH; higher pH needs more."""
    if ph is None:
        return None
    for upper_bound, ppm in _SO2_BY_PH:
        if ph < upper_bound:
            return ppm
    return _SO2_HIGH_PH_PPM


def so2_grams(ppm: float | None, volume_gallons: float | None) -> float | None:
    """Grams of potassium metabisulfite needed to dose ``ppm`` into ``volume_gallons``."""
    if not ppm or not volume_gallons:
        return None
    return round(ppm * volume_gallons * LITERS_PER_GALLON / KMBS_CONVERSION_FACTOR, 2)


def estimate_crush_volume_gallons(crushed_weight_lbs: float, processing_style: ProcessingStyle = "red") -> float:
    gallons_per_ton = GALLONS_PER_TON_WHITE if processing_style == "white" else GALLONS_PER_TON_RED
    return (crushed_weight_lbs / 2000) * gallons_per_ton


def stem_loss(initial_weight_lbs: float, crushed_weight_lbs: float) -> StemLoss:
    loss = initial_weight_lbs - crushed_weight_lbs
    loss_pct = (loss / initial_weight_lbs) * 100 if initial_weight_lbs > 0 else 0.0
    return StemLoss(loss_lbs=round(loss, 1), loss_pct=round(loss_pct, 1))


def estimate_cases(volume_gallons: float) -> int:
    """Estimated 12 x 750ml cases for a bulk volume, rounding halves up."""
    return math.floor(volume_gallons / GALLONS_PER_CASE + 0.5)


def plan_bottling_run(
    *,
    bulk_volume_gallons: float,
    loss_pct: float = 0.0,
    headspace_loss_gallons: float = 0.0,
    bottle_ml: float = 750,
    case_pack: int = 12,
    pallet_cases: int | None = None,
) -> BottlingRunPlan:
    net_volume = bulk_volume_gallons * (1 - loss_pct / 100) - headspace_loss_gallons
    net_volume = max(net_volume, 0.0)

    bottles = math.floor(net_volume * ML_PER_GALLON / bottle_ml)
    cases = bottles // case_pack
    pallets = cases // pallet_cases if pallet_cases else 0

    return BottlingRunPlan(
        net_volume_gallons=round(net_volume, 2),
        estimated_bottles=bottles,
        estimated_cases=cases,
        estimated_pallets=pallets,
    )


def blend_chemistry(components: Sequence[BlendComponent]) -> BlendChemistry:
    valid = [component for component in components if component.percentage > 0]
    if not valid:
        return BlendChemistry(ph=None, ta=None, alcohol_pct=None, brix=None, component_count=0)

    total_pct = sum(component.percentage for component in valid)

    def weighted(field_name: str) -> float | None:
        values = [
            (getattr(component, field_name), component.percentage / total_pct)
            for component in valid
            if getattr(component, field_name) is not None
        ]
        if not values:
            return None
        return sum(value * weight for value, weight in values)

    return BlendChemistry(
        ph=weighted("ph"),
        ta=weighted("ta"),
        alcohol_pct=weighted("alcohol_pct"),
        brix=weighted("brix"),
        component_count=len(valid),
    )


def varietal_composition(components: Sequence[BlendComponent]) -> list[tuple[str, float]]:
    composition: dict[str, float] = {}
    for component in components:
        if component.percentage <= 0:
            continue
        varietal = component.varietal or "Unknown"
        composition[varietal] = composition.get(varietal, 0.0) + component.percentage

    return sorted(composition.items(), key=lambda item: item[1], reverse=True)
