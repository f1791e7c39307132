"""
catscii — Route Dependencies
==============================

What:  FastAPI dependency providers reading the objects create_app() and the
       lifespan hook place on app.state.
"""

from fastapi import Request
from opentelemetry import trace

from catscii.config import Settings
from catscii.exceptions import CatsciiError
from catscii.services.cat_art import CatArtService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tracer(request: Request) -> trace.Tracer:
    return request.app.state.observability.tracer


def get_cat_art_service(request: Request) -> CatArtService:
    service = request.app.state.cat_art_service
    if service is None:
        # Raised before root_get runs, so the CatsciiError handler answers.
        raise CatsciiError(
            "Image pipeline is not initialised",
            context={"hint": "application lifespan has not started"},
        )
    return service
