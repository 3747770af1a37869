from __future__ import annotations

import json
import logging
from time import perf_counter
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from cellarpilot.services.observability import metrics_tracker

logger = logging.getLogger("cellarpilot.request")


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        started = perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            payload = self._record(request, request_id, status_code=500, started=started, event="request_error")
            logger.exception(json.dumps(payload))
            response = JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": request_id},
            )
        else:
            payload = self._record(
                request,
                request_id,
                status_code=response.status_code,
                started=started,
                event="request_completed",
            )
            if response.status_code >= 500:
                logger.error(json.dumps(payload))
            elif response.status_code >= 400:
                logger.warning(json.dumps(payload))
            else:
                logger.info(json.dumps(payload))

        response.headers["X-Request-ID"] = request_id
        return response

    @staticmethod
    def _record(request: Request, request_id: str, *, status_code: int, started: float, event: str) -> dict[str, object]:
        duration_ms = (perf_counter() - started) * 1000
        metrics_tracker.record_request(
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
        return {
            "event": event,
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "lot_id": getattr(request.state, "lot_id", None),
        }
