from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from loguru import logger
from prometheus_fastapi_instrumentator.instrumentation import (
    PrometheusFastApiInstrumentator,
)

from chain_gateway.config import DEFAULT_API_KEY, settings
from chain_gateway.connection_cache import ConnectionCache
from chain_gateway.endpoint_registry import EndpointRegistry
from chain_gateway.exceptions import ConfigurationError


def setup_prometheus(app: FastAPI) -> None:  # pragma: no cover
    """
    Enables prometheus integration.

    :param app: current application.
    """
    PrometheusFastApiInstrumentator(should_group_status_codes=False).instrument(
        app,
    ).expose(app, should_gzip=True, name="prometheus_metrics")


def check_api_key() -> None:
    """
    Refuses to serve production traffic with the built-in API key.

    Outside development an unchanged key is logged as a warning.

    :raises ConfigurationError: if GATEWAY_API_KEY is unset in production.
    """
    if settings.api_key != DEFAULT_API_KEY:
        return
    if settings.is_production:
        raise ConfigurationError("GATEWAY_API_KEY must be set in production")
    if settings.environment != "development":
        logger.warning("Using the built-in API key, set GATEWAY_API_KEY")


def init_connection_cache(app: FastAPI) -> None:
    """
    Creates the endpoint registry and connection cache.

    Endpoint URLs are validated here, so a malformed configuration stops the
    service at startup.

    :param app: current application.
    """
    registry = EndpointRegistry.from_settings(settings)
    app.state.endpoint_registry = registry
    app.state.connection_cache = ConnectionCache(
        registry,
        verify_chain=settings.verify_chain_on_connect,
        rpc_timeout=settings.rpc_timeout,
    )


async def shutdown_connection_cache(app: FastAPI) -> None:
    """
    Closes every upstream connection.

    :param app: current application.
    """
    await app.state.connection_cache.close()


@asynccontextmanager
async def lifespan_setup(
    app: FastAPI,
) -> AsyncGenerator[None, None]:  # pragma: no cover
    """
    Actions to run on application startup.

    This function uses fastAPI app to store data
    in the state, such as the connection cache.

    :param app: the fastAPI application.
    :return: function that actually performs actions.
    """

    app.middleware_stack = None
    check_api_key()
    init_connection_cache(app)
    if settings.prometheus_enabled:
        setup_prometheus(app)
    app.middleware_stack = app.build_middleware_stack()
    logger.info(f"{settings.app_name} started in {settings.environment} mode")

    yield
    await shutdown_connection_cache(app)
