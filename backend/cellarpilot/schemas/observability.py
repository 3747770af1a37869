from datetime import datetime

from pydantic import BaseModel, Field


class RouteMetricsRead(BaseModel):
    method: str
    path: str
    count: int
    avg_latency_ms: float
    max_latency_ms: float
    client_errors: int
    server_errors: int


class CellarMetricsResponse(BaseModel):
    generated_at: datetime
    uptime_seconds: int
    total_requests: int
    advisory_runs: int
    recommendations_by_title: dict[str, int] = Field(default_factory=dict)
    recommendations_by_priority: dict[str, int] = Field(default_factory=dict)
    routes: list[RouteMetricsRead] = Field(default_factory=list)
