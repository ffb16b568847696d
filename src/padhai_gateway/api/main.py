"""
HTTP entry point for the gateway.

A FastAPI service exposing one POST endpoint (under the legacy function
paths as well) that accepts a request envelope and always answers 200 with
a canonical response, except for malformed input (400), unsupported
methods (405) and missing configuration (500).
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from pydantic import ValidationError

from ..core.config import GatewayConfig, load_config
from ..core.errors import ConfigurationError, InvalidRequestError
from ..core.gateway import Gateway
from ..models.request import RequestEnvelope
from ..models.response import to_payload

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

GATEWAY_PATHS = [
    "/api/gemini",
    "/api/chat",
]


def _setup_tracing() -> None:
    """Export spans over OTLP when a collector endpoint is configured."""
    otel_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not otel_endpoint:
        return

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    resource = Resource.create({"service.name": "padhai-gateway"})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint)))
    trace.set_tracer_provider(provider)
    logger.info(f"Exporting traces to {otel_endpoint}")


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, **extra},
        headers=CORS_HEADERS,
    )


def create_app(
    config: Optional[GatewayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Gateway configuration. Loaded from file/env at startup if None.
        transport: Optional httpx transport for upstream calls
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        _setup_tracing()

        gateway_config = config or load_config()
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(gateway_config.attempt_timeout),
            transport=transport,
        )

        app.state.gateway = None
        app.state.config_error = None
        try:
            app.state.gateway = Gateway.from_config(gateway_config, client)
            logger.info("Gateway service started")
        except ConfigurationError as e:
            # Reported once here; requests get a 500 until restarted.
            logger.error(f"Gateway misconfigured: {e.message}")
            app.state.config_error = e.message

        yield

        await client.aclose()
        logger.info("Gateway service stopped")

    app = FastAPI(
        title="PadhaiSetu LLM Gateway",
        description="Mode-routed LLM and image generation with provider fallback",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # Instrument with OpenTelemetry
    FastAPIInstrumentor.instrument_app(app)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        gateway: Optional[Gateway] = request.app.state.gateway
        if gateway is None:
            return JSONResponse(
                status_code=500,
                content={"status": "misconfigured", "error": request.app.state.config_error},
            )
        return {"status": "healthy", "modes": gateway.describe()}

    async def preflight() -> Response:
        return Response(status_code=200, headers=CORS_HEADERS)

    async def method_not_allowed() -> JSONResponse:
        return _error(405, "Method Not Allowed")

    async def answer(request: Request) -> JSONResponse:
        """
        Serve one gateway request.

        Only malformed input and missing configuration produce non-200
        statuses; upstream trouble is answered with a goodwill message.
        """
        gateway: Optional[Gateway] = request.app.state.gateway
        if gateway is None:
            return _error(500, request.app.state.config_error or "Gateway is not configured")

        try:
            data = json.loads(await request.body())
        except ValueError:
            return _error(400, "Invalid JSON body")

        if not isinstance(data, dict):
            return _error(400, "Request body must be a JSON object")

        try:
            envelope = RequestEnvelope.model_validate(data)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
                for err in e.errors()[:3]
            ]
            return _error(400, "Invalid request", details=problems)

        try:
            response = await gateway.handle(envelope, is_cancelled=request.is_disconnected)
        except InvalidRequestError as e:
            return _error(400, e.message)

        return JSONResponse(content=to_payload(response), headers=CORS_HEADERS)

    for path in GATEWAY_PATHS:
        app.add_api_route(path, answer, methods=["POST"])
        app.add_api_route(path, preflight, methods=["OPTIONS"])
        app.add_api_route(path, method_not_allowed, methods=["GET", "PUT", "PATCH", "DELETE"])

    return app


app = create_app()


def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
    )


if __name__ == "__main__":
    run()
