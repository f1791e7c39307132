"""
catscii — API Schemas
======================

What:  Pydantic models for the JSON responses the service produces.
       GET / answers with HTML and failures with plain text, so the only JSON
       contract is the health probe.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Liveness response returned by GET /health.
    Note:  The probe makes no outbound calls; it reports that the process is
           up and which image source it is configured for.
    """
    status: str = Field(description="Always 'ok' while the process serves requests")
    version: str = Field(description="Application version")
    image_source: str = Field(description="Configured image source: cataas or thecatapi")
    uptime_seconds: float = Field(description="Seconds since service started")
