"""
tests/test_rpc_client.py - aiohttp JSON-RPC client tests against a local node stub.
"""

import asyncio
from typing import Any, Dict, List

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from chain_gateway.exceptions import ConfigurationError, UpstreamError
from chain_gateway.rpc_client import RPCClient, validate_endpoint

from tests.conftest import TX_HASH, make_transaction

pytestmark = pytest.mark.integration


class NodeStub:
    """Minimal JSON-RPC node answering from a method -> response table."""

    def __init__(self) -> None:
        self.responses: Dict[str, Any] = {
            "eth_blockNumber": {"result": "0x64"},
            "eth_chainId": {"result": "0x89"},
            "eth_estimateGas": {"result": "0x5208"},
            "eth_call": {"result": "0x" + "00" * 31 + "2a"},
            "eth_getTransactionByHash": {"result": make_transaction(TX_HASH)},
            "eth_getTransactionReceipt": {"result": None},
        }
        self.requests: List[Dict[str, Any]] = []
        self.status = 200
        self.delay = 0.0
        self.raw_body: str = ""

    async def handle(self, request: web.Request) -> web.Response:
        payload = await request.json()
        self.requests.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raw_body:
            return web.Response(text=self.raw_body, status=self.status)
        response = {"jsonrpc": "2.0", "id": payload["id"]}
        response.update(self.responses[payload["method"]])
        return web.json_response(response, status=self.status)


@pytest.fixture
def node() -> NodeStub:
    return NodeStub()


@pytest_asyncio.fixture
async def server(node: NodeStub):
    app = web.Application()
    app.router.add_post("/rpc", node.handle)
    async with TestServer(app) as test_server:
        yield test_server


@pytest_asyncio.fixture
async def rpc(server: TestServer):
    client = RPCClient(str(server.make_url("/rpc")), "137", timeout=2)
    yield client
    await client.close()


@pytest.mark.parametrize("url", ["", "localhost:8545", "ws://node.example.org"])
def test_validate_endpoint_rejects(url):
    with pytest.raises(ConfigurationError):
        validate_endpoint(url)


def test_construction_validates_without_io():
    with pytest.raises(ConfigurationError):
        RPCClient("not-a-url", "1")

    client = RPCClient("https://node.example.org/rpc", "1")
    assert client.session is None
    assert client.url.host == "node.example.org"


@pytest.mark.asyncio
async def test_quantities_are_decoded(rpc, node):
    assert await rpc.get_block_number() == 100
    assert await rpc.get_chain_id() == 137
    assert await rpc.estimate_gas({"to": TX_HASH[:42]}) == 21000

    assert [r["method"] for r in node.requests] == [
        "eth_blockNumber",
        "eth_chainId",
        "eth_estimateGas",
    ]
    assert len({r["id"] for r in node.requests}) == 3
    assert rpc.active_requests == {}


@pytest.mark.asyncio
async def test_call_sends_block_tag(rpc, node):
    result = await rpc.call({"to": "0x" + "11" * 20, "data": "0x18160ddd"})

    assert result.endswith("2a")
    assert node.requests[0]["params"][1] == "latest"


@pytest.mark.asyncio
async def test_null_result_is_returned_as_none(rpc):
    assert await rpc.get_transaction_receipt(TX_HASH) is None
    tx = await rpc.get_transaction(TX_HASH)
    assert tx["hash"] == TX_HASH


@pytest.mark.asyncio
async def test_json_rpc_error_raises_upstream_error(rpc, node):
    node.responses["eth_blockNumber"] = {"error": {"code": -32000, "message": "header not found"}}

    with pytest.raises(UpstreamError, match="header not found") as exc_info:
        await rpc.get_block_number()
    assert exc_info.value.context["method"] == "eth_blockNumber"
    assert exc_info.value.context["chain_id"] == "137"


@pytest.mark.asyncio
async def test_http_error_raises_upstream_error_without_retry(rpc, node):
    node.status = 503

    with pytest.raises(UpstreamError, match="status 503"):
        await rpc.get_block_number()
    assert len(node.requests) == 1


@pytest.mark.asyncio
async def test_malformed_body_raises_upstream_error(rpc, node):
    node.raw_body = "<html>gateway timeout</html>"

    with pytest.raises(UpstreamError, match="Malformed RPC response"):
        await rpc.get_block_number()


@pytest.mark.asyncio
async def test_non_hex_quantity_raises_upstream_error(rpc, node):
    node.responses["eth_blockNumber"] = {"result": 100}

    with pytest.raises(UpstreamError, match="not a hex quantity"):
        await rpc.get_block_number()


@pytest.mark.asyncio
async def test_timeout_raises_upstream_error(server, node):
    node.delay = 0.5
    client = RPCClient(str(server.make_url("/rpc")), "137", timeout=0.05)
    try:
        with pytest.raises(UpstreamError, match="timed out"):
            await client.get_block_number()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_unreachable_node_raises_upstream_error():
    client = RPCClient("http://127.0.0.1:9/rpc", "1", timeout=2)
    try:
        with pytest.raises(UpstreamError, match="transport error"):
            await client.get_block_number()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_cancellation_propagates(server, node):
    node.delay = 1
    client = RPCClient(str(server.make_url("/rpc")), "137", timeout=10)
    try:
        task = asyncio.create_task(client.get_block_number())
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.active_requests == {}
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_non_hex_quantity_error_carries_host(rpc, node, server):
    node.responses["eth_chainId"] = {"result": None}

    with pytest.raises(UpstreamError) as exc_info:
        await rpc.get_chain_id()
    assert exc_info.value.context["host"] == server.host
    assert exc_info.value.context["method"] == "eth_chainId"


@pytest.mark.asyncio
async def test_closed_client_refuses_calls(rpc, node):
    assert await rpc.get_block_number() == 100

    await rpc.close()

    with pytest.raises(UpstreamError, match="RPC client is closed"):
        await rpc.get_block_number()
    assert rpc.session is None
    assert len(node.requests) == 1
