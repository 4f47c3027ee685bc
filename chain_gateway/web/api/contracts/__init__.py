"""Contract read and transaction preparation API."""
from chain_gateway.web.api.contracts.views import router

__all__ = ["router"]
