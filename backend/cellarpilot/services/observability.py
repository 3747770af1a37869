from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from threading import Lock

from cellarpilot.services.fermentation_advisor import Recommendation


@dataclass
class RouteStats:
    method: str
    path: str
    count: int = 0
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0
    client_errors: int = 0
    server_errors: int = 0

    def record(self, duration_ms: float, status_code: int) -> None:
        self.count += 1
        self.total_latency_ms += duration_ms
        self.max_latency_ms = max(self.max_latency_ms, duration_ms)

        if 400 <= status_code <= 499:
            self.client_errors += 1
        elif status_code >= 500:
            self.server_errors += 1

    @property
    def avg_latency_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_latency_ms / self.count


class CellarMetricsTracker:
    """Process-local counters for HTTP traffic and generated advisories."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._started_at = datetime.utcnow()
        self._routes: dict[tuple[str, str], RouteStats] = {}
        self._advisory_runs = 0
        self._titles: Counter[str] = Counter()
        self._priorities: Counter[str] = Counter()

    def reset(self) -> None:
        with self._lock:
            self._started_at = datetime.utcnow()
            self._routes = {}
            self._advisory_runs = 0
            self._titles = Counter()
            self._priorities = Counter()

    def record_request(self, *, method: str, path: str, status_code: int, duration_ms: float) -> None:
        key = (method, path)
        with self._lock:
            route = self._routes.setdefault(key, RouteStats(method=method, path=path))
            route.record(duration_ms=duration_ms, status_code=status_code)

    def record_advisories(self, recommendations: Iterable[Recommendation]) -> None:
        with self._lock:
            self._advisory_runs += 1
            for recommendation in recommendations:
                self._titles[recommendation.title] += 1
                self._priorities[recommendation.priority] += 1

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            now = datetime.utcnow()
            routes = [
                {
                    "method": route.method,
                    "path": route.path,
                    "count": route.count,
                    "avg_latency_ms": round(route.avg_latency_ms, 2),
                    "max_latency_ms": round(route.max_latency_ms, 2),
                    "client_errors": route.client_errors,
                    "server_errors": route.server_errors,
                }
                for route in sorted(self._routes.values(), key=lambda item: (item.path, item.method))
            ]

            return {
                "generated_at": now,
                "uptime_seconds": int((now - self._started_at).total_seconds()),
                "total_requests": sum(route.count for route in self._routes.values()),
                "advisory_runs": self._advisory_runs,
                "recommendations_by_title": dict(sorted(self._titles.items())),
                "recommendations_by_priority": dict(sorted(self._priorities.items())),
                "routes": routes,
            }


metrics_tracker = CellarMetricsTracker()
