"""
Exception handlers.

Error responses bypass parts of the middleware stack, so every handler
stamps CORS and X-Request-ID headers itself; otherwise browsers report a
CORS failure instead of the real 4xx/5xx.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from noteacher.api.middleware.request_id import REQUEST_ID_HEADER
from noteacher.logging_config import get_logger

logger = get_logger(__name__)


def register_exception_handlers(app: FastAPI, cors_origins: Sequence[str], debug: bool = False) -> None:
    """Install HTTP, validation and catch-all handlers on the app."""
    origins = list(cors_origins)

    def respond(
        request: Request,
        status_code: int,
        content: Dict[str, Any],
        headers: Optional[Mapping[str, str]] = None,
    ) -> JSONResponse:
        out = {
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": "*",
            "Access-Control-Allow-Headers": "*",
        }
        origin = request.headers.get("origin")
        if origin in origins:
            out["Access-Control-Allow-Origin"] = origin
        elif origins:
            out["Access-Control-Allow-Origin"] = origins[0]
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            out[REQUEST_ID_HEADER] = request_id
            if status_code >= 500 or status_code == status.HTTP_422_UNPROCESSABLE_ENTITY:
                content = {**content, "request_id": request_id}
        if headers:
            out.update(headers)
        return JSONResponse(status_code=status_code, content=content, headers=out)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return respond(request, exc.status_code, {"detail": exc.detail}, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        return respond(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"detail": "Validation error", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if debug:
            content = {"detail": str(exc), "type": type(exc).__name__}
        else:
            content = {"detail": "Internal server error"}
        return respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)
