from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SO2DosageRead(BaseModel):
    ph: float | None
    volume_gallons: float | None
    recommended_ppm: int | None
    ppm_used: float | None
    kmbs_grams: float | None


class CrushYieldRequest(BaseModel):
    initial_weight_lbs: float | None = Field(default=None, ge=0)
    crushed_weight_lbs: float = Field(gt=0)
    processing_style: Literal["red", "white", "rose"] = "red"


class CrushYieldRead(BaseModel):
    crushed_weight_lbs: float
    tons: float
    processing_style: Literal["red", "white", "rose"]
    estimated_volume_gallons: float
    estimated_cases: int
    stem_loss_lbs: float | None
    stem_loss_pct: float | None


class BottlingRunRequest(BaseModel):
    bulk_volume_gallons: float = Field(gt=0)
    loss_pct: float = Field(default=0.0, ge=0, lt=100)
    headspace_loss_gallons: float = Field(default=0.0, ge=0)
    bottle_ml: float = Field(default=750, gt=0)
    case_pack: int = Field(default=12, gt=0)
    pallet_cases: int | None = Field(default=None, gt=0)


class BottlingRunRead(BaseModel):
    bulk_volume_gallons: float
    net_volume_gallons: float
    estimated_bottles: int
    estimated_cases: int
    estimated_pallets: int
    quick_estimate_cases: int


class BlendComponentIn(BaseModel):
    lot_id: str | None = Field(default=None, max_length=64)
    varietal: str | None = Field(default=None, max_length=80)
    percentage: float = Field(ge=0, le=100)
    ph: float | None = Field(default=None, gt=0, lt=14)
    ta: float | None = Field(default=None, ge=0)
    alcohol_pct: float | None = Field(default=None, ge=0, lt=25)
    brix: float | None = Field(default=None, ge=-10, le=40)


class BlendRequest(BaseModel):
    components: list[BlendComponentIn] = Field(min_length=1, max_length=50)


class VarietalShareRead(BaseModel):
    varietal: str
    percentage: float
    lot_ids: list[str] = Field(default_factory=list)


class BlendRead(BaseModel):
    component_count: int
    total_percentage: float
    ph: float | None
    ta: float | None
    alcohol_pct: float | None
    brix: float | None
    composition: list[VarietalShareRead] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class LabRangesIn(BaseModel):
    ph_min: float = Field(default=3.2, gt=0, lt=14)
    ph_max: float = Field(default=3.8, gt=0, lt=14)
    ph_ideal: str = Field(default="3.4-3.6", max_length=40)
    ta_min: float = Field(default=5.0, ge=0)
    ta_max: float = Field(default=8.0, ge=0)
    ta_ideal: str = Field(default="6-7 g/L", max_length=40)
    free_so2_min: float = Field(default=15.0, ge=0)
    free_so2_max: float = Field(default=50.0, ge=0)
    va_max: float = Field(default=0.8, gt=0)


class LabAlertRequest(BaseModel):
    ph: float | None = Field(default=None, gt=0, lt=14)
    ta: float | None = Field(default=None, ge=0)
    free_so2: float | None = Field(default=None, ge=0)
    va: float | None = Field(default=None, ge=0)
    ranges: LabRangesIn | None = None


class LabAlertRead(BaseModel):
    metric: Literal["ph", "ta", "free_so2", "va"]
    level: Literal["error", "warning"]
    message: str
    action: str
    kmbs_g_per_hl: int | None = None

    model_config = ConfigDict(from_attributes=True)


class LabAlertListResponse(BaseModel):
    count: int
    alerts: list[LabAlertRead]
