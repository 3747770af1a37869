from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LotSnapshot(BaseModel):
    id: str | None = Field(default=None, max_length=64)
    name: str | None = Field(default=None, max_length=140)
    varietal: str | None = Field(default=None, max_length=80)
    status: str | None = Field(default=None, max_length=30)
    current_brix: float | None = Field(default=None, ge=-10, le=40)
    initial_brix: float | None = Field(default=None, ge=-10, le=40)
    current_temp_f: float | None = Field(default=None, gt=0, lt=140)
    fermentation_start_date: datetime | None = None
    target_fermentation_days: int | None = Field(default=None, gt=0, le=365)
    harvest_date: date | datetime | None = None


class FermentationLogIn(BaseModel):
    log_date: datetime
    brix: float | None = Field(default=None, ge=-10, le=40)
    temp_f: float | None = Field(default=None, gt=0, lt=140)
    notes: str | None = None
    work_performed: list[str] | None = None


class FermentationEventIn(BaseModel):
    event_type: Literal["nutrient", "deviation", "intervention", "oxygen"]
    event_date: datetime
    resolved: bool = False


class FermentationAdvisoryRequest(BaseModel):
    lot: LotSnapshot
    logs: list[FermentationLogIn] = Field(default_factory=list, max_length=500)
    events: list[FermentationEventIn] = Field(default_factory=list, max_length=500)
    selected_profile: str | None = Field(default=None, min_length=1, max_length=40)
    evaluated_at: datetime | None = None


class RecommendationRead(BaseModel):
    kind: Literal["warning", "info", "success"]
    priority: Literal["high", "medium", "low"]
    title: str
    message: str
    suggestions: list[str] = Field(default_factory=list)
    suggested_action: Literal["log", "nutrient", "deviation", "intervention"] | None

    model_config = ConfigDict(from_attributes=True)


class FermentationTimerRead(BaseModel):
    days_elapsed: int
    days_remaining: int
    percent_complete: float
    target_date: datetime
    is_overdue: bool
    is_complete: bool


class FermentationAdvisoryRead(BaseModel):
    lot_id: str | None
    evaluated_at: datetime
    days_fermenting: int
    fermentation_status: Literal["unknown", "active", "finishing", "dry"]
    selected_profile: str | None
    timer: FermentationTimerRead | None
    recommendation_count: int
    recommendations: list[RecommendationRead] = Field(default_factory=list)
