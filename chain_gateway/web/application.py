from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chain_gateway.config import settings
from chain_gateway.web.api.router import api_router
from chain_gateway.web.errors import register_exception_handlers
from chain_gateway.web.lifespan import lifespan_setup
from chain_gateway.web.middleware import security_headers, setup_rate_limiting


def get_app() -> FastAPI:
    """
    Get FastAPI application.

    This is the main constructor of an application.

    :return: application.
    """
    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan_setup,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    register_exception_handlers(app)
    setup_rate_limiting(app)
    app.middleware("http")(security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Main router for the API.
    app.include_router(router=api_router, prefix="/api")

    return app
