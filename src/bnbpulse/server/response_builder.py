"""Response Builder Utilities
===========================

Standardized response construction for the metric endpoints. Every response
carries the same permissive CORS headers; errors keep the success schema's
shape (empty lists/objects) next to an ``error`` string.
"""

from typing import Any, Dict, List, Optional

from fastapi import Response
from fastapi.responses import JSONResponse

from bnbpulse.exceptions import PulseError

__all__ = ["ResponseBuilder"]

GENERIC_ERROR_MESSAGE = "Internal server error"


class ResponseBuilder:
    """Builds JSON responses with CORS headers attached.

    Args:
        allowed_headers: Request headers advertised in
            ``Access-Control-Allow-Headers``
    """

    def __init__(self, allowed_headers: Optional[List[str]] = None):
        self.allowed_headers = allowed_headers or ["authorization", "x-client-info", "apikey", "content-type"]

    @property
    def cors_headers(self) -> Dict[str, str]:
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": ", ".join(self.allowed_headers),
            "Access-Control-Allow-Methods": "GET, OPTIONS",
        }

    def success_response(self, payload: Dict[str, Any]) -> JSONResponse:
        return JSONResponse(content=payload, status_code=200, headers=self.cors_headers)

    def error_response(
        self,
        error: Exception,
        empty_shape: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        """Render any error as HTTP 500.

        Only ``PulseError`` messages reach the client; they are written without
        URLs. Anything else is reported with a generic message.
        """
        message = error.message if isinstance(error, PulseError) else GENERIC_ERROR_MESSAGE
        body = {"error": message}
        for key, value in (empty_shape or {}).items():
            if key != "error":
                body[key] = value
        return JSONResponse(content=body, status_code=500, headers=self.cors_headers)

    def preflight_response(self) -> Response:
        """Empty-bodied answer to an OPTIONS preflight."""
        return Response(content=None, status_code=200, headers=self.cors_headers)
