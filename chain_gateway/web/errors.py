import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from chain_gateway.config import settings
from chain_gateway.exceptions import GatewayError, InvalidInput


def error_response(
    request: Request,
    exc: Exception,
    status_code: int,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Build the ``{success: false, error}`` envelope for a failed request.

    In production, server-class errors hide their message; elsewhere the
    exception type and traceback are included for diagnosis.
    """
    context = exc.context if isinstance(exc, GatewayError) else {}
    log = logger.bind(
        method=request.method,
        url=str(request.url),
        path_params=request.path_params,
        query=dict(request.query_params),
        context=context,
    )
    if status_code >= 500:
        log.opt(exception=exc).error(f"Error: {exc}")
    else:
        log.warning(f"Error: {exc}")

    production = settings.is_production
    error: Dict[str, Any] = {
        "message": "Internal server error"
        if production and status_code >= 500
        else str(exc),
    }
    if not production:
        error["type"] = type(exc).__name__
        error["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__),
        )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return error_response(request, exc, exc.status_code)


async def http_error_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    error = GatewayError(str(exc.detail))
    return error_response(request, error, exc.status_code, headers=exc.headers)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return error_response(request, InvalidInput(f"Invalid request: {details}"), 400)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(request, exc, 500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        StarletteHTTPException,
        http_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RequestValidationError,
        validation_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_error_handler)
