import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncIterator, Optional

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from search_gateway.api import (
    routes_cache,
    routes_couchbase,
    routes_docs,
    routes_health,
    routes_metrics,
    routes_search,
)
from search_gateway.core.config import get_settings
from search_gateway.core.errors import GatewayError, MalformedRequestError
from search_gateway.core.logging import log_request, setup_logging
from search_gateway.core.metrics import MetricsCollector
from search_gateway.db.docstore import DocumentStore
from search_gateway.db.elastic import ConnectionManager, HandleFactory, connect_elasticsearch
from search_gateway.services.ingestion import IngestionService
from search_gateway.services.search import SearchService

logger = logging.getLogger(__name__)


def _get_endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    if route and hasattr(route, "path"):
        return f"{request.method} {route.path}"
    return f"{request.method} {request.url.path}"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(handle_factory: Optional[HandleFactory] = None) -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.connection.connect()
        yield
        app.state.connection.close()
        app.state.redis.close()
        app.state.docstore.close()

    app = FastAPI(lifespan=lifespan)
    connection = ConnectionManager(
        handle_factory or partial(connect_elasticsearch, settings),
        retry_delay=settings.reconnect_delay,
    )

    app.state.settings = settings
    app.state.connection = connection
    app.state.ingestion = IngestionService(
        connection,
        settings.elastic_index,
        refresh=settings.elastic_refresh,
        strict=settings.strict_bulk,
    )
    app.state.search = SearchService(
        connection,
        settings.elastic_index,
        max_result_window=settings.max_result_window,
    )
    app.state.redis = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    app.state.docstore = DocumentStore.from_settings(settings)
    app.state.metrics = MetricsCollector()

    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, MalformedRequestError.default_message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            logger.exception("unhandled error on %s %s", request.method, request.url.path)
            response = _error_response(500, "Internal Server Error")
        latency_ms = (time.perf_counter() - start) * 1000
        endpoint_label = _get_endpoint_label(request)
        app.state.metrics.record_request(endpoint_label, status_code, latency_ms)
        log_request(
            request_id,
            endpoint_label,
            request.url.path,
            status_code,
            latency_ms,
            app.state.connection.state.value,
        )
        response.headers["X-Request-Id"] = request_id
        return response

    app.include_router(routes_docs.router)
    app.include_router(routes_search.router)
    app.include_router(routes_cache.router)
    app.include_router(routes_couchbase.router)
    app.include_router(routes_health.router)
    app.include_router(routes_metrics.router)

    return app


if os.getenv("APP_DISABLE_AUTOCREATE") == "1":
    app = FastAPI()
else:
    app = create_app()
