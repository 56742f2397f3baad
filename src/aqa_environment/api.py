"""
HTTP transport for the environment server (FastAPI).

Exposes EnvironmentServer.get_observations as a JSON endpoint:

    POST /v1/observations   body: EnvironmentRequest → EnvironmentResponse
    GET  /health

Batch-level errors come back as a JSON error envelope carrying the
ErrorCode both by name and by value:

    {"error": {"code": "NO_QUERIES", "error_code": 1, "message": "..."}}

    NO_QUERIES, EMPTY_QUESTION → 400
    SCRAPE_FAILED              → 503
    batch deadline exceeded    → 504

A 200 response can still contain failed queries; check each
Response.error_message.

Usage:
    app = create_app(EnvironmentServer(LLMAnswerer()))
    # or, blocking:
    serve(EnvironmentServer(LLMAnswerer()), ServerConfig(port=9000))
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from aqa_environment import __version__
from aqa_environment.config import ServerConfig
from aqa_environment.errors import BatchTimeoutError, EnvironmentServerError
from aqa_environment.models.batch import EnvironmentRequest, EnvironmentResponse, ErrorCode
from aqa_environment.server import EnvironmentServer

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    ErrorCode.NO_QUERIES: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_QUESTION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SCRAPE_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_body(code: str, error_code: Optional[int], message: str) -> dict:
    return {"error": {"code": code, "error_code": error_code, "message": message}}


async def environment_error_handler(
    request: Request, exc: EnvironmentServerError
) -> JSONResponse:
    """Map a batch-level EnvironmentServerError onto its HTTP status."""
    status_code = _STATUS_BY_CODE.get(
        exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.warning(
        "Environment error: %s - %s",
        exc.error_code.name,
        exc.message,
        extra={"error_code": int(exc.error_code), "path": request.url.path},
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.error_code.name, int(exc.error_code), exc.message),
    )


async def timeout_error_handler(request: Request, exc: BatchTimeoutError) -> JSONResponse:
    logger.warning("Batch timeout: %s", exc, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content=_error_body("DEADLINE_EXCEEDED", None, str(exc)),
    )


def create_app(server: EnvironmentServer, config: ServerConfig = None) -> FastAPI:
    """
    Build a FastAPI app around an EnvironmentServer.

    The server is stored on app.state so tests and middleware can reach it.
    """
    config = config or ServerConfig()
    app = FastAPI(title=config.title, version=__version__)
    app.state.environment_server = server

    app.add_exception_handler(EnvironmentServerError, environment_error_handler)
    app.add_exception_handler(BatchTimeoutError, timeout_error_handler)

    @app.post("/v1/observations", response_model=EnvironmentResponse)
    async def get_observations(payload: EnvironmentRequest, request: Request):
        """Answer a batch of queries; one Response per Query, in order."""
        env_server: EnvironmentServer = request.app.state.environment_server
        return await env_server.get_observations(payload)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    return app


def serve(server: EnvironmentServer, config: ServerConfig = None) -> None:
    """Run the HTTP server with uvicorn. Blocks until shutdown."""
    import uvicorn

    config = config or ServerConfig()
    logger.info("Starting environment server on %s:%d", config.host, config.port)
    uvicorn.run(create_app(server, config), host=config.host, port=config.port)
