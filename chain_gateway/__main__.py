import uvicorn
from loguru import logger

from chain_gateway.config import settings
from chain_gateway.log import configure_logging


def main() -> None:
    """
    Main entry point for the service.

    This function configures logging from settings and runs the FastAPI
    application with uvicorn until interrupted.

    Returns:
        None
    """
    configure_logging(settings)
    logger.info(f"Starting {settings.app_name} on {settings.base_url}")
    uvicorn.run(
        "chain_gateway.web.application:get_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
