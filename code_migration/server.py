"""
HTTP server shipping migratable code, using FastAPI.

Routes:
    GET /health              load balancer health check
    GET /{kind}/{n}          code artifact for a computation; the optional
                             client_version query parameter lets the server
                             omit source the client already holds
"""

import logging
import time
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import configure_logging
from .config import AppConfig, ServerConfig
from .exceptions import UnknownKindError, ValidationError
from .generator import CodeGenerator
from .versioning import VersionCache

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig | None = None) -> FastAPI:
    """Create a configured FastAPI app."""
    config = config or AppConfig.load().server
    version_cache = VersionCache(CodeGenerator(version=config.version, server_id=config.server_id))

    app = FastAPI(title="Code Migration Server", version=config.version)
    app.state.config = config
    app.state.version_cache = version_cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
        allow_credentials=config.cors_origin != "*",
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000.0
        query = f"?{request.url.query}" if request.url.query else ""
        client_host = request.client.host if request.client else "-"
        logger.info(
            f"{request.method} {request.url.path}{query} from {client_host}"
            f" -> {response.status_code} in {duration_ms:.1f}ms"
        )
        return response

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(UnknownKindError)
    async def handle_unknown_kind(request: Request, exc: UnknownKindError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.get("/health")
    async def health():
        logger.info("Health check from load balancer")
        return {
            "status": "ok",
            "timestamp": int(time.time() * 1000),
            "server": config.server_id,
            "version": config.version,
        }

    @app.get("/{kind}/{n}")
    async def get_code(kind: str, n: str, client_version: str | None = None):
        logger.info(f"incoming GET /{kind}/{n} - processing on {config.server_id}")
        artifact = version_cache.build(kind, n, client_version)
        logger.info(
            f"response sent from {config.server_id}"
            f" ({'cached' if artifact.cached else 'with source'})"
        )
        return artifact.to_dict()

    return app


def main():
    """Run the code migration server."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(
        description="Code Migration Server",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to a YAML or JSON configuration file",
    )
    parser.add_argument("--host", type=str, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to bind to (default: 3001)")
    parser.add_argument("--server-id", type=str, help="Identifier reported in responses and logs")
    parser.add_argument("--code-version", type=str, help="Version of the shipped source")

    args = parser.parse_args()

    config = AppConfig.load(args.config).server
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.server_id:
        config.server_id = args.server_id
    if args.code_version:
        config.version = args.code_version

    configure_logging(level=config.log_level_value, server_id=config.server_id)
    logger.info(f"Code migration server ({config.server_id}) listening on port {config.port}")
    logger.info(f"CORS enabled for origin: {config.cors_origin}")

    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level="warning")


if __name__ == "__main__":
    main()
