from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from chain_gateway.connection_cache import ConnectionCache
from chain_gateway.exceptions import InvalidInput, NotFound
from chain_gateway.models import TransactionRequest
from chain_gateway.web.api.envelope import success
from chain_gateway.web.api.transactions.schema import EstimateGasRequest
from chain_gateway.web.dependencies import get_connection_cache

router = APIRouter()


@router.post("/estimate-gas")
async def estimate_gas(
    body: EstimateGasRequest,
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    if not body.to or not body.data:
        raise InvalidInput("Transaction recipient and data are required")

    tx = TransactionRequest(to=body.to, data=body.data, value=body.value, from_=body.from_)
    client = await cache.get_connection(body.chain_id)
    gas_estimate = await client.estimate_gas(tx)
    return success(
        {
            "gasEstimate": str(gas_estimate),
            "tx": {"to": tx.to, "data": tx.data, "value": hex(tx.value)},
        },
    )


@router.get("/{tx_hash}")
async def get_transaction_receipt(
    tx_hash: str,
    chain_id: Optional[str] = Query(None, alias="chainId"),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    client = await cache.get_connection(chain_id)
    receipt = await client.get_transaction_receipt(tx_hash)
    if receipt is None:
        raise NotFound(
            f"Transaction {tx_hash} not found",
            tx_hash=tx_hash,
            chain_id=client.chain_id,
        )
    return success(receipt.model_dump(mode="json", by_alias=True))


@router.get("/{tx_hash}/status")
async def get_transaction_status(
    tx_hash: str,
    chain_id: Optional[str] = Query(None, alias="chainId"),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    client = await cache.get_connection(chain_id)
    status = await client.get_transaction_status(tx_hash)
    return success(status.model_dump(mode="json", by_alias=True))
