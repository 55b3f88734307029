"""
FastAPI application serving the dashboard metrics.

Every metric is a ``GET`` route returning its reconciled payload. Failures are
rendered by ``ResponseBuilder`` as HTTP 500 with the metric's empty shape, and
any ``OPTIONS`` request gets an empty-bodied preflight answer.
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel

from bnbpulse import __version__
from bnbpulse.config import PulseConfig, load_config
from bnbpulse.exceptions import PulseError
from bnbpulse.metrics import Metric, Toolkits, build_metrics
from bnbpulse.server.response_builder import ResponseBuilder

# URL path -> metric name
METRIC_ROUTES: Dict[str, str] = {
    "/supply": "supply",
    "/burn-rate": "burn_rate",
    "/burn-info": "burn_info",
    "/backing": "backing",
    "/aster-tvl": "aster_tvl",
    "/yields": "yields",
    "/exchange-yields": "exchange_yields",
    "/lp-locking": "lp_locking",
    "/chain-metrics": "chain_metrics",
}


class HealthResponse(BaseModel):
    status: str
    version: str
    metrics: List[str]
    missing_credentials: List[str]


def _metric_endpoint(metric: Metric, builder: ResponseBuilder):
    async def endpoint() -> Response:
        try:
            payload = await metric.resolve()
        except PulseError as e:
            logger.error(f"{metric.name} failed: {e.message}")
            return builder.error_response(e, metric.empty_payload())
        except Exception as e:
            logger.exception(f"{metric.name} failed unexpectedly: {e}")
            return builder.error_response(e, metric.empty_payload())
        return builder.success_response(payload)

    endpoint.__name__ = f"get_{metric.name}"
    return endpoint


def create_app(
    config: Optional[PulseConfig] = None,
    metrics: Optional[Dict[str, Metric]] = None,
    toolkits: Optional[Toolkits] = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Service configuration; loaded from the environment if omitted
        metrics: Prebuilt metrics keyed by name; built from ``toolkits`` if omitted
        toolkits: Upstream clients; built from ``config`` if needed and
            closed on shutdown
    """
    config = config or load_config()
    if metrics is None:
        toolkits = toolkits or Toolkits.from_config(config)
        metrics = build_metrics(config, toolkits)

    builder = ResponseBuilder(config.server.allowed_headers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"BNB Pulse {__version__} serving {len(metrics)} metrics")
        yield
        if toolkits is not None:
            await toolkits.aclose()
        logger.info("BNB Pulse stopped")

    app = FastAPI(
        title="BNB Pulse API",
        description="Reconciled BNB supply, burn, yield and locking metrics",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.metrics = metrics

    for path, name in METRIC_ROUTES.items():
        if name in metrics:
            app.add_api_route(path, _metric_endpoint(metrics[name], builder), methods=["GET"])

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=__version__,
            metrics=sorted(metrics),
            missing_credentials=config.missing_credentials(),
        )

    @app.options("/{path:path}")
    async def preflight(path: str) -> Response:
        return builder.preflight_response()

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return builder.error_response(exc)

    return app
