"""
Vitals API Router
=================

Endpoints for logging device vitals and reading them back.

ALL ENDPOINTS:
-------------
POST   /api/vitals                 - Log one reading
GET    /api/vitals?page=&page_size= - Paged history, newest first
GET    /api/vitals/analytics       - Rolling-window statistics and trends
GET    /api/vitals/{id}            - One stored reading

Errors come back as {"error": ..., "field": ..., "code": ...}. The mapping
from exceptions to responses lives in main.create_app.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response

from vital_monitor.models import (
    AnalyticsResult,
    ErrorResponse,
    PagedResponse,
    VitalLogRequest,
    VitalReading,
)
from vital_monitor.services import VitalService


# Create the router - this groups all our vitals endpoints together
router = APIRouter(
    prefix="/api/vitals",
    tags=["vitals"],
    responses={400: {"model": ErrorResponse}},
)


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================
# The VitalService is built by create_app and kept on app.state

def set_vital_service(app, service: VitalService):
    """Called by create_app to hand the service to the endpoints."""
    app.state.vital_service = service


def get_vital_service(request: Request) -> VitalService:
    """Get the vital service for use in endpoints."""
    return request.app.state.vital_service


# =============================================================================
# ENDPOINTS
# =============================================================================
# Plain `def` endpoints: the store is synchronous, so FastAPI runs these in
# its threadpool.

@router.post("", status_code=201, response_model=VitalReading)
def log_vital(
    response: Response,
    body: Optional[VitalLogRequest] = Body(None),
    service: VitalService = Depends(get_vital_service),
):
    """
    Log one vital reading.

    Send us:
    - device_id: Which device took the reading
    - timestamp: When (ISO-8601 UTC, at most 5 minutes ahead of server time)
    - thermal_value: 0 to 3
    - battery_level: 0 to 100
    - memory_usage: 0 to 100

    We give back the stored reading with its id, and a Location header.
    """
    stored = service.log_vital(body)
    response.headers["Location"] = f"/api/vitals/{stored.id}"
    return stored


@router.get("", response_model=PagedResponse[VitalReading])
def get_history(
    page: int = 1,
    page_size: Optional[int] = None,
    service: VitalService = Depends(get_vital_service),
):
    """
    Get stored readings, newest first, one page at a time.

    - page: 1-based page number (default 1)
    - page_size: readings per page, 1 to 100 (default 20)
    """
    return service.get_history(page=page, page_size=page_size)


@router.get("/analytics", response_model=AnalyticsResult)
def get_analytics(service: VitalService = Depends(get_vital_service)):
    """Averages, min/max and trends over the newest 100 readings."""
    return service.get_analytics()


@router.get("/{vital_id}", response_model=VitalReading, responses={404: {"model": ErrorResponse}})
def get_vital(vital_id: int, service: VitalService = Depends(get_vital_service)):
    """Get one stored reading by id."""
    return service.get_vital(vital_id)
