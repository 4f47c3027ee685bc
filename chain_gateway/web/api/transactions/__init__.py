"""Transaction receipt, status and gas estimation API."""
from chain_gateway.web.api.transactions.views import router

__all__ = ["router"]
