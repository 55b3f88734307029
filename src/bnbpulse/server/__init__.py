"""HTTP layer: FastAPI app and response shaping."""

from .app import create_app, METRIC_ROUTES
from .response_builder import ResponseBuilder

__all__ = [
    "create_app",
    "METRIC_ROUTES",
    "ResponseBuilder",
]
