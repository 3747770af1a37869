import json
import logging
from datetime import datetime

from fastapi import APIRouter, Body, HTTPException, Query, Request, status

from cellarpilot.schemas.fermentation import (
    FermentationAdvisoryRead,
    FermentationAdvisoryRequest,
    FermentationTimerRead,
    RecommendationRead,
)
from cellarpilot.schemas.profiles import (
    FermentationProfileListResponse,
    FermentationProfileRead,
    TempRangeRead,
    YeastRecommendationRead,
    YeastStrainListResponse,
    YeastStrainRead,
)
from cellarpilot.services.fermentation_advisor import generate_recommendations
from cellarpilot.services.fermentation_profiles import (
    FermentationProfile,
    YeastStrain,
    list_fermentation_profiles,
    list_yeast_strains,
    recommend_yeast,
    resolve_fermentation_profile,
    resolve_yeast_strain,
)
from cellarpilot.services.fermentation_state import (
    build_fermentation_state,
    build_intervention_events,
    build_log_entries,
    default_target_days,
    fermentation_status,
    fermentation_timer,
)
from cellarpilot.services.observability import metrics_tracker

router = APIRouter(prefix="/fermentation", tags=["fermentation"])

logger = logging.getLogger("cellarpilot.advisory")


def _to_profile_read(profile: FermentationProfile) -> FermentationProfileRead:
    return FermentationProfileRead(
        key=profile.key,
        name=profile.name,
        temp_range=TempRangeRead(
            min_f=profile.temp_range.min_f,
            max_f=profile.temp_range.max_f,
            ideal_f=profile.temp_range.ideal_f,
        ),
        target_days=profile.target_days,
        color=profile.color,
    )


def _to_strain_read(strain: YeastStrain) -> YeastStrainRead:
    return YeastStrainRead(**strain.__dict__)


@router.post("/advisories", response_model=FermentationAdvisoryRead)
def create_fermentation_advisory(
    request: Request,
    payload: FermentationAdvisoryRequest = Body(...),
) -> FermentationAdvisoryRead:
    profile_key: str | None = None
    if payload.selected_profile is not None:
        profile = resolve_fermentation_profile(payload.selected_profile)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fermentation profile not found")
        profile_key = profile.key

    lot = payload.lot
    request.state.lot_id = lot.id
    now = payload.evaluated_at or datetime.utcnow()

    state = build_fermentation_state(lot, selected_profile=profile_key, now=now)
    recommendations = generate_recommendations(
        state,
        build_log_entries(payload.logs),
        build_intervention_events(payload.events),
        now=now,
    )
    metrics_tracker.record_advisories(recommendations)

    logger.info(
        json.dumps(
            {
                "event": "advisory_generated",
                "lot_id": lot.id,
                "days_fermenting": state.days_fermenting,
                "titles": [item.title for item in recommendations],
            }
        )
    )

    timer = fermentation_timer(lot.fermentation_start_date, lot.target_fermentation_days, now)
    return FermentationAdvisoryRead(
        lot_id=lot.id,
        evaluated_at=now,
        days_fermenting=state.days_fermenting,
        fermentation_status=fermentation_status(lot.current_brix),
        selected_profile=profile_key,
        timer=FermentationTimerRead(**timer.__dict__) if timer else None,
        recommendation_count=len(recommendations),
        recommendations=[
            RecommendationRead(
                kind=item.kind,
                priority=item.priority,
                title=item.title,
                message=item.message,
                suggestions=list(item.suggestions),
                suggested_action=item.suggested_action,
            )
            for item in recommendations
        ],
    )


@router.get("/profiles", response_model=FermentationProfileListResponse)
def get_fermentation_profiles() -> FermentationProfileListResponse:
    profiles = [_to_profile_read(profile) for profile in list_fermentation_profiles()]
    return FermentationProfileListResponse(count=len(profiles), items=profiles)


@router.get("/profiles/{profile_key}", response_model=FermentationProfileRead)
def get_fermentation_profile(profile_key: str) -> FermentationProfileRead:
    profile = resolve_fermentation_profile(profile_key)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fermentation profile not found")
    return _to_profile_read(profile)


@router.get("/yeast-strains", response_model=YeastStrainListResponse)
def get_yeast_strains(search: str | None = Query(default=None)) -> YeastStrainListResponse:
    strains = [_to_strain_read(strain) for strain in list_yeast_strains(search=search)]
    return YeastStrainListResponse(count=len(strains), items=strains)


@router.get("/yeast-strains/recommendation", response_model=YeastRecommendationRead)
def get_yeast_recommendation(varietal: str | None = Query(default=None, max_length=80)) -> YeastRecommendationRead:
    code = recommend_yeast(varietal)
    strain = resolve_yeast_strain(code)
    if strain is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Yeast catalog is inconsistent")
    return YeastRecommendationRead(
        varietal=varietal,
        recommended_code=code,
        strain=_to_strain_read(strain),
        default_target_days=default_target_days(varietal),
    )


@router.get("/yeast-strains/{strain_code}", response_model=YeastStrainRead)
def get_yeast_strain(strain_code: str) -> YeastStrainRead:
    strain = resolve_yeast_strain(strain_code)
    if strain is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Yeast strain not found")
    return _to_strain_read(strain)
