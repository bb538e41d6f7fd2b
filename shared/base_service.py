"""
Base service class for the Network Inventory dashboard backend.
"""

import os
import time
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from shared.config import ServiceConfig, get_config
from shared.errors import ApiClientError, ErrorResponse, InventoryException, format_validation_errors, is_server_error
from shared.logging import configure_logging, get_logger, request_context
from shared.metrics import get_metrics_collector

REQUEST_ID_HEADER = "X-Request-ID"


class BaseService:
    """FastAPI scaffolding shared by backend services.

    Provides request correlation and timing, ``/health`` and ``/metrics``,
    and the mapping from exceptions to error responses. Subclasses add
    their routes to ``self.app`` and override ``_check_dependencies``.
    """

    def __init__(self, service_name: str, port: int, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.port = port
        self.config = config or get_config(service_name, port)

        configure_logging(service_name, self.config.log_level, self.config.log_format)
        self.logger = get_logger(service_name)

        # Per-instance registry; /metrics only reports this service
        self.registry = CollectorRegistry()
        self.metrics = get_metrics_collector(service_name, self.registry)
        self._start_time = time.time()

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()
        self._setup_exception_handlers()

    def _create_app(self) -> FastAPI:
        local = self.config.env == "local"
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Network Inventory - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if local else None,
            redoc_url="/redoc" if local else None,
        )

    def _setup_middleware(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def correlate_and_time(request: Request, call_next):
            start_time = time.perf_counter()

            with request_context(request.headers.get(REQUEST_ID_HEADER)) as request_id:
                response = await call_next(request)
                duration = time.perf_counter() - start_time
                response.headers[REQUEST_ID_HEADER] = request_id

                # Route template rather than the raw path
                route = request.scope.get("route")
                endpoint = getattr(route, "path", request.url.path)
                self.metrics.record_http_request(request.method, endpoint, response.status_code, duration)

                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2),
                )

            return response

    def _setup_routes(self):
        @self.app.get("/health")
        async def health_check():
            try:
                dependencies = await self._check_dependencies()
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={"service": self.service_name, "status": "error", "error": str(e)},
                )

            self.metrics.record_health_check("ok")
            return {
                "service": self.service_name,
                "status": "ok",
                "uptime_seconds": self._get_uptime(),
                "dependencies": dependencies,
                "version": "1.0.0",
                "commit": os.getenv("GIT_COMMIT", "unknown"),
            }

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(content=generate_latest(self.registry), media_type=CONTENT_TYPE_LATEST)

    def _setup_exception_handlers(self):
        @self.app.exception_handler(InventoryException)
        async def inventory_exception_handler(request: Request, exc: InventoryException):
            self.logger.warning("Request rejected", code=exc.code, message=exc.message, path=request.url.path)
            return self._error_response(exc.status_code, exc.code, exc.to_response())

        @self.app.exception_handler(ApiClientError)
        async def api_client_error_handler(request: Request, exc: ApiClientError):
            """Relay inventory API failures with the upstream status."""
            log = self.logger.error if is_server_error(exc) else self.logger.warning
            log(
                "Inventory API error",
                status=exc.status,
                code=exc.code,
                errors=format_validation_errors(exc),
                path=request.url.path,
            )
            # Network failures (status 0) surface as a bad gateway
            status_code = exc.status if exc.status >= 400 else 502
            return self._error_response(status_code, exc.code or "API_ERROR", exc.to_response())

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=True)
            return self._error_response(
                500,
                "INTERNAL_ERROR",
                ErrorResponse(code="INTERNAL_ERROR", message="Internal server error"),
            )

    def _error_response(self, status_code: int, error_type: str, body: ErrorResponse) -> JSONResponse:
        self.metrics.record_error(error_type)
        return JSONResponse(status_code=status_code, content=body.model_dump())

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
