from typing import Awaitable, Callable, Dict

from fastapi import FastAPI, Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from chain_gateway.config import settings
from chain_gateway.exceptions import RateLimited
from chain_gateway.web.errors import error_response

# Same defaults helmet applies, minus a content security policy, which would
# block the CDN assets of the interactive docs.
SECURITY_HEADERS: Dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Answer a throttled request with the error envelope.

    Kept synchronous: the slowapi middleware calls it directly.
    """
    error = RateLimited(
        "Too many requests, please try again later.",
        limit=str(exc.detail),
    )
    response = error_response(request, error, error.status_code)
    return request.app.state.limiter._inject_headers(
        response,
        request.state.view_rate_limit,
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Throttle every route per client address.

    :param app: current application.
    """
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        headers_enabled=True,
        enabled=settings.rate_limit_enabled,
    )
    app.add_exception_handler(
        RateLimitExceeded,
        rate_limit_exceeded_handler,  # type: ignore[arg-type]
    )
    app.add_middleware(SlowAPIMiddleware)


async def security_headers(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
