from fastapi import APIRouter, Query

from cellarpilot.schemas.calculations import (
    BlendRead,
    BlendRequest,
    BottlingRunRead,
    BottlingRunRequest,
    CrushYieldRead,
    CrushYieldRequest,
    LabAlertListResponse,
    LabAlertRead,
    LabAlertRequest,
    SO2DosageRead,
    VarietalShareRead,
)
from cellarpilot.services.cellar_calculator import (
    BlendComponent,
    blend_chemistry,
    estimate_cases,
    estimate_crush_volume_gallons,
    plan_bottling_run,
    recommended_so2_ppm,
    so2_grams,
    stem_loss,
    varietal_composition,
)
from cellarpilot.services.lab_chemistry import DEFAULT_LAB_RANGES, LabRanges, lab_chemistry_alerts

router = APIRouter(prefix="/calculations", tags=["calculations"])


@router.get("/so2", response_model=SO2DosageRead)
def get_so2_dosage(
    ph: float | None = Query(default=None, gt=0, lt=14),
    volume_gallons: float | None = Query(default=None, gt=0),
    ppm: float | None = Query(default=None, gt=0, le=200),
) -> SO2DosageRead:
    recommended = recommended_so2_ppm(ph)
    ppm_used = ppm if ppm is not None else recommended
    return SO2DosageRead(
        ph=ph,
        volume_gallons=volume_gallons,
        recommended_ppm=recommended,
        ppm_used=ppm_used,
        kmbs_grams=so2_grams(ppm_used, volume_gallons),
    )


@router.post("/crush-yield", response_model=CrushYieldRead)
def calculate_crush_yield(payload: CrushYieldRequest) -> CrushYieldRead:
    volume = estimate_crush_volume_gallons(payload.crushed_weight_lbs, payload.processing_style)

    loss = None
    if payload.initial_weight_lbs is not None:
        loss = stem_loss(payload.initial_weight_lbs, payload.crushed_weight_lbs)

    return CrushYieldRead(
        crushed_weight_lbs=payload.crushed_weight_lbs,
        tons=round(payload.crushed_weight_lbs / 2000, 3),
        processing_style=payload.processing_style,
        estimated_volume_gallons=round(volume, 1),
        estimated_cases=estimate_cases(volume),
        stem_loss_lbs=loss.loss_lbs if loss else None,
        stem_loss_pct=loss.loss_pct if loss else None,
    )


@router.post("/bottling-run", response_model=BottlingRunRead)
def calculate_bottling_run(payload: BottlingRunRequest) -> BottlingRunRead:
    plan = plan_bottling_run(
        bulk_volume_gallons=payload.bulk_volume_gallons,
        loss_pct=payload.loss_pct,
        headspace_loss_gallons=payload.headspace_loss_gallons,
        bottle_ml=payload.bottle_ml,
        case_pack=payload.case_pack,
        pallet_cases=payload.pallet_cases,
    )
    return BottlingRunRead(
        bulk_volume_gallons=payload.bulk_volume_gallons,
        net_volume_gallons=plan.net_volume_gallons,
        estimated_bottles=plan.estimated_bottles,
        estimated_cases=plan.estimated_cases,
        estimated_pallets=plan.estimated_pallets,
        quick_estimate_cases=estimate_cases(payload.bulk_volume_gallons),
    )


@router.post("/blend", response_model=BlendRead)
def calculate_blend(payload: BlendRequest) -> BlendRead:
    components = [
        BlendComponent(
            percentage=row.percentage,
            varietal=row.varietal,
            ph=row.ph,
            ta=row.ta,
            alcohol_pct=row.alcohol_pct,
            brix=row.brix,
        )
        for row in payload.components
    ]
    chemistry = blend_chemistry(components)

    lot_ids: dict[str, list[str]] = {}
    for row in payload.components:
        if row.lot_id and row.percentage > 0:
            lot_ids.setdefault(row.varietal or "Unknown", []).append(row.lot_id)

    total_pct = round(sum(row.percentage for row in payload.components), 2)

    notes: list[str] = []
    if abs(total_pct - 100) > 0.01:
        notes.append(f"Component percentages add up to {total_pct}%, not 100%.")
    if chemistry.component_count == 0:
        notes.append("No component has a positive percentage; blend chemistry not estimated.")

    return BlendRead(
        component_count=chemistry.component_count,
        total_percentage=total_pct,
        ph=_rounded(chemistry.ph, 2),
        ta=_rounded(chemistry.ta, 2),
        alcohol_pct=_rounded(chemistry.alcohol_pct, 2),
        brix=_rounded(chemistry.brix, 1),
        composition=[
            VarietalShareRead(
                varietal=varietal,
                percentage=round(percentage, 2),
                lot_ids=lot_ids.get(varietal, []),
            )
            for varietal, percentage in varietal_composition(components)
        ],
        notes=notes,
    )


@router.post("/lab-alerts", response_model=LabAlertListResponse)
def check_lab_chemistry(payload: LabAlertRequest) -> LabAlertListResponse:
    ranges = LabRanges(**payload.ranges.model_dump()) if payload.ranges else DEFAULT_LAB_RANGES
    alerts = lab_chemistry_alerts(
        ph=payload.ph,
        ta=payload.ta,
        free_so2=payload.free_so2,
        va=payload.va,
        ranges=ranges,
    )
    return LabAlertListResponse(
        count=len(alerts),
        alerts=[LabAlertRead.model_validate(alert) for alert in alerts],
    )


def _rounded(value: float | None, digits: int) -> float | None:
    return round(value, digits) if value is not None else None
