import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from loguru import logger

from chain_gateway.config import settings
from chain_gateway.connection_cache import ConnectionCache
from chain_gateway.exceptions import InvalidInput
from chain_gateway.utils.abi import to_json_value
from chain_gateway.web.api.contracts.schema import PrepareTxRequest
from chain_gateway.web.api.envelope import success
from chain_gateway.web.dependencies import get_connection_cache

router = APIRouter()


def _parse_args(raw_args: Optional[str]) -> List[Any]:
    if not raw_args:
        return []
    try:
        args = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"args must be a JSON array: {exc}", args=raw_args) from exc
    if not isinstance(args, list):
        raise InvalidInput("args must be a JSON array", args=raw_args)
    return args


@router.get("/{address}")
async def get_contract(
    address: str,
    chain_id: Optional[str] = Query(None, alias="chainId"),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    client = await cache.get_connection(chain_id)
    contract = await client.load_contract(address)
    return success(
        {
            "address": contract.address,
            "chainId": contract.chain_id,
            "interface": contract.descriptor.name,
            "abi": contract.descriptor.abi,
            "signatures": contract.descriptor.signatures(),
        },
    )


@router.get("/{address}/abi")
async def get_contract_abi(
    address: str,
    chain_id: Optional[str] = Query(None, alias="chainId"),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    client = await cache.get_connection(chain_id)
    contract = await client.load_contract(address)
    return success(
        {
            "address": contract.address,
            "chainId": contract.chain_id,
            "abi": contract.descriptor.abi,
        },
    )


@router.get("/{address}/call/{function_name}")
async def call_contract_function(
    address: str,
    function_name: str,
    chain_id: Optional[str] = Query(None, alias="chainId"),
    args: Optional[str] = Query(None, description="JSON array of arguments"),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    call_args = _parse_args(args)
    logger.info(
        f"Calling contract function: {function_name} on {address} "
        f"(chain {chain_id or 'default'}, args {call_args})",
    )

    client = await cache.get_connection(chain_id)
    contract = await client.load_contract(address)
    result = await client.call_read_function(contract, function_name, call_args)
    return success(
        {
            "address": contract.address,
            "functionName": function_name,
            "result": to_json_value(result),
        },
    )


@router.post("/{address}/prepare-tx/{function_name}")
async def prepare_transaction(
    address: str,
    function_name: str,
    body: Optional[PrepareTxRequest] = Body(None),
    chain_id: Optional[str] = Query(None, alias="chainId"),
    cache: ConnectionCache = Depends(get_connection_cache),
) -> Dict[str, Any]:
    """
    Builds the unsigned transaction payload for a contract function.

    Nothing is signed or broadcast; the caller submits the payload with its own
    wallet.
    """
    body = body or PrepareTxRequest()
    logger.info(
        f"Preparing transaction for contract function: {function_name} on {address} "
        f"(chain {chain_id or 'default'}, args {body.args})",
    )

    client = await cache.get_connection(chain_id)
    contract = await client.load_contract(address)
    data = client.encode_function_call(contract, function_name, body.args)
    tx_chain_id = (
        contract.chain_id if contract.chain_id.isdigit() else str(settings.default_chain_id)
    )
    return success(
        {
            "txData": {
                "to": contract.address,
                "data": data,
                "value": hex(body.value),
                "chainId": tx_chain_id,
            },
            "functionName": function_name,
            "args": body.args,
        },
    )
