"""
catscii — Health Check Route
==============================

What:  Liveness probe for orchestrators and load balancers.
How:   Reports process uptime and configuration without touching the image
       API: a cat API outage should fail GET /, not take the instance out of
       rotation.
"""

import time

from fastapi import APIRouter, Depends

from catscii import __version__
from catscii.config import Settings
from catscii.dependencies import get_settings
from catscii.schemas import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service liveness check",
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        image_source=settings.image_source,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
