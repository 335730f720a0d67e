"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP bookastay_booking_operations_total Booking lifecycle operations by outcome
        # TYPE bookastay_booking_operations_total counter
        bookastay_booking_operations_total{operation="confirm",outcome="success"} 3.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """Metrics in Prometheus text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
