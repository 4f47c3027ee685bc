"""API for checking project status."""
from chain_gateway.web.api.monitoring.views import router

__all__ = ["router"]
