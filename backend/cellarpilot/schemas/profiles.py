from pydantic import BaseModel, Field


class TempRangeRead(BaseModel):
    min_f: float
    max_f: float
    ideal_f: float


class FermentationProfileRead(BaseModel):
    key: str
    name: str
    temp_range: TempRangeRead
    target_days: int = Field(gt=0)
    color: str


class FermentationProfileListResponse(BaseModel):
    count: int
    items: list[FermentationProfileRead] = Field(default_factory=list)


class YeastStrainRead(BaseModel):
    code: str
    display_name: str
    temp_range_text: str
    alcohol_tolerance_text: str
    notes: str


class YeastStrainListResponse(BaseModel):
    count: int
    items: list[YeastStrainRead] = Field(default_factory=list)


class YeastRecommendationRead(BaseModel):
    varietal: str | None
    recommended_code: str
    strain: YeastStrainRead
    default_target_days: int
