from fastapi import Depends
from fastapi.routing import APIRouter

from chain_gateway.web.api import contracts, monitoring, transactions
from chain_gateway.web.dependencies import verify_api_key

api_router = APIRouter()
api_router.include_router(monitoring.router)
api_router.include_router(
    contracts.router,
    prefix="/contracts",
    tags=["contracts"],
    dependencies=[Depends(verify_api_key)],
)
api_router.include_router(
    transactions.router,
    prefix="/transactions",
    tags=["transactions"],
    dependencies=[Depends(verify_api_key)],
)
