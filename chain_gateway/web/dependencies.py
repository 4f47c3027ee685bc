import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from loguru import logger

from chain_gateway.config import settings
from chain_gateway.connection_cache import ConnectionCache
from chain_gateway.exceptions import AuthError

api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def get_connection_cache(request: Request) -> ConnectionCache:
    """
    Returns the connection cache created at startup.

    :param request: current request.
    :return: the application's connection cache.
    """
    return request.app.state.connection_cache


async def verify_api_key(
    request: Request,
    api_key: Optional[str] = Depends(api_key_header),
) -> None:
    """
    Checks the ``X-API-KEY`` header against the configured shared secret.

    :param request: current request.
    :param api_key: header value, None when absent.
    :raises AuthError: when the header is missing or does not match.
    """
    if not api_key:
        raise AuthError("API key is required")

    if not secrets.compare_digest(api_key.encode(), settings.api_key.encode()):
        logger.bind(
            ip=request.client.host if request.client else None,
            path=request.url.path,
            method=request.method,
        ).warning("Invalid API key attempt")
        raise AuthError("Invalid API key")
