"""
Pytest configuration and fixtures for gateway tests.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chain_gateway.chain_client import ChainClient
from chain_gateway.config import settings
from chain_gateway.connection_cache import ConnectionCache
from chain_gateway.endpoint_registry import EndpointRegistry
from chain_gateway.exceptions import UpstreamError
from chain_gateway.interfaces import StaticInterfaceSource
from chain_gateway.web.application import get_app

TOKEN = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
HOLDER = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
TX_HASH = "0x" + "ab" * 32
PENDING_HASH = "0x" + "cd" * 32
FAILED_HASH = "0x" + "ef" * 32
MISSING_HASH = "0x" + "00" * 32

ENDPOINTS = {
    "1": "https://mainnet.example.org/rpc",
    "137": "https://polygon.example.org/rpc",
    "default": "https://default.example.org/rpc",
}


class FakeTransport:
    """In-memory JSON-RPC transport recording every call it serves."""

    def __init__(self, chain_id: str = "1", remote_chain_id: int = 1) -> None:
        self.chain_id = chain_id
        self.remote_chain_id = remote_chain_id
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.block_number = 100
        self.call_output = "0x"
        self.gas = 21000
        self.error: Optional[Exception] = None
        self.calls: List[Tuple[str, Any]] = []
        self.closed = False

    def _record(self, method: str, params: Any) -> None:
        self.calls.append((method, params))
        if self.error is not None:
            raise self.error

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    async def call(self, tx: Dict[str, Any], block: str = "latest") -> str:
        self._record("eth_call", tx)
        return self.call_output

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self._record("eth_getTransactionByHash", tx_hash)
        return self.transactions.get(tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self._record("eth_getTransactionReceipt", tx_hash)
        return self.receipts.get(tx_hash)

    async def get_block_number(self) -> int:
        self._record("eth_blockNumber", None)
        return self.block_number

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        self._record("eth_estimateGas", tx)
        return self.gas

    async def get_chain_id(self) -> int:
        self._record("eth_chainId", None)
        # Yield so concurrent first accesses overlap inside the cache.
        await asyncio.sleep(0)
        return self.remote_chain_id

    async def close(self) -> None:
        self.closed = True


def make_transaction(
    tx_hash: str,
    block_number: Optional[int] = 95,
    value: int = 10**18,
) -> Dict[str, Any]:
    return {
        "hash": tx_hash,
        "blockNumber": hex(block_number) if block_number is not None else None,
        "blockHash": None,
        "from": HOLDER,
        "to": TOKEN,
        "value": hex(value),
        "gas": hex(60000),
        "gasPrice": hex(30 * 10**9),
        "nonce": "0x7",
        "input": "0x",
    }


def make_receipt(tx_hash: str, status: int = 1, block_number: int = 95) -> Dict[str, Any]:
    return {
        "transactionHash": tx_hash,
        "blockNumber": hex(block_number),
        "blockHash": "0x" + "11" * 32,
        "from": HOLDER,
        "to": TOKEN,
        "contractAddress": None,
        "status": hex(status),
        "gasUsed": hex(52000),
        "cumulativeGasUsed": hex(1200000),
        "effectiveGasPrice": hex(31 * 10**9),
        "logs": [],
    }


@pytest.fixture
def registry() -> EndpointRegistry:
    return EndpointRegistry(ENDPOINTS)


@pytest.fixture
def transport() -> FakeTransport:
    fake = FakeTransport()
    fake.transactions[TX_HASH] = make_transaction(TX_HASH)
    fake.receipts[TX_HASH] = make_receipt(TX_HASH)
    fake.transactions[PENDING_HASH] = make_transaction(PENDING_HASH, block_number=None)
    fake.transactions[FAILED_HASH] = make_transaction(FAILED_HASH, block_number=90)
    fake.receipts[FAILED_HASH] = make_receipt(FAILED_HASH, status=0, block_number=90)
    return fake


@pytest.fixture
def chain_client(transport: FakeTransport) -> ChainClient:
    return ChainClient("1", ENDPOINTS["1"], transport, StaticInterfaceSource())


@pytest.fixture
def cache(registry: EndpointRegistry, transport: FakeTransport) -> ConnectionCache:
    """Connection cache whose clients all share the prepared fake transport."""
    source = StaticInterfaceSource()

    def factory(chain_id: str, endpoint: str) -> ChainClient:
        return ChainClient(chain_id, endpoint, transport, source)

    return ConnectionCache(registry, client_factory=factory)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-API-KEY": settings.api_key}


@pytest_asyncio.fixture
async def client(cache: ConnectionCache):
    app = get_app()
    app.state.connection_cache = cache
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def upstream_down(transport: FakeTransport) -> FakeTransport:
    transport.error = UpstreamError("connection refused", chain_id="1", method="test")
    return transport
