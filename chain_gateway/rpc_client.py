import asyncio
import itertools
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional, Protocol

import aiohttp
from yarl import URL

from chain_gateway.config import settings
from chain_gateway.exceptions import ConfigurationError, UpstreamError
from chain_gateway.utils.decorators import log_rpc_call


def validate_endpoint(rpc_endpoint: str) -> URL:
    """
    Parse and validate an upstream endpoint URL.

    Args:
        rpc_endpoint (str): The endpoint URL.

    Returns:
        URL: The parsed URL.

    Raises:
        ConfigurationError: If the URL is not an absolute http(s) URL.
    """
    try:
        url = URL(rpc_endpoint)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Malformed RPC endpoint: {exc}",
            endpoint=rpc_endpoint,
        ) from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"RPC endpoint must be an absolute http(s) URL: {rpc_endpoint!r}",
            endpoint=rpc_endpoint,
        )
    return url


class JsonRpcTransport(Protocol):
    """Capability set the chain client needs from an upstream connection."""

    chain_id: str

    async def call(self, tx: Dict[str, Any], block: str = "latest") -> str: ...

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]: ...

    async def get_transaction_receipt(
        self,
        tx_hash: str,
    ) -> Optional[Dict[str, Any]]: ...

    async def get_block_number(self) -> int: ...

    async def estimate_gas(self, tx: Dict[str, Any]) -> int: ...

    async def get_chain_id(self) -> int: ...

    async def close(self) -> None: ...


class RPCClient:
    """RPCClient is an asynchronous JSON-RPC client for one Ethereum node endpoint."""

    def __init__(
        self,
        rpc_endpoint: str,
        chain_id: str,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the RPC client.

        The endpoint is validated immediately; the HTTP session is opened lazily
        on the first call so that constructing a client never performs I/O.

        Args:
            rpc_endpoint (str): The endpoint URL for the RPC server.
            chain_id (str): The chain identifier the client is bound to.
            timeout (Optional[float]): Total seconds allowed per call. Defaults to
                                       settings.rpc_timeout.

        Attributes:
            url (URL): The parsed endpoint.
            session (Optional[aiohttp.ClientSession]): The http session.
            _id_counter (itertools.count): Counter for generating unique request IDs.
            active_requests (Dict[int, Dict[str, Any]]): Dictionary to store active
                                                         request IDs and their details.
            lock (asyncio.Lock): Lock to ensure safe updates to active requests.
            closed (bool): Set once close() has run; a closed client never reopens.
        """
        self.url = validate_endpoint(rpc_endpoint)
        self.rpc_endpoint = rpc_endpoint
        self.chain_id = chain_id
        self.timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else settings.rpc_timeout,
        )
        self.session: Optional[aiohttp.ClientSession] = None
        self.closed = False

        self._id_counter = itertools.count(1)
        self.active_requests: Dict[int, Dict[str, Any]] = {}
        self.lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"RPCClient(chain_id={self.chain_id!r}, host={self.url.host!r})"

    def _context(self, method: str) -> Dict[str, Any]:
        return {"chain_id": self.chain_id, "method": method, "host": self.url.host}

    def _get_session(self, method: str) -> aiohttp.ClientSession:
        if self.closed:
            raise UpstreamError("RPC client is closed", **self._context(method))
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self.session

    async def close(self) -> None:
        """
        Asynchronously closes the session.

        This method should be called to properly close the session and release any
        resources associated with it. Later calls fail instead of opening a
        new session.
        """
        self.closed = True
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def _generate_request_id(self, method: str) -> int:
        async with self.lock:
            request_id = next(self._id_counter)
            self.active_requests[request_id] = {
                "method": method,
                "timestamp": datetime.now(UTC),
            }
            return request_id

    async def _remove_request_id(self, request_id: int) -> None:
        async with self.lock:
            self.active_requests.pop(request_id, None)

    @log_rpc_call()
    async def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Makes a single asynchronous JSON-RPC call.

        There is no retry: a failure is reported to the caller, which owns the
        retry policy.

        Args:
            method (str): The name of the RPC method to call.
            params (Optional[List[Any]]): The parameters to pass to the RPC method.

        Returns:
            Any: The ``result`` member of the response, which may be None.

        Raises:
            UpstreamError: On connection failures, timeouts, non-200 responses,
                           JSON-RPC errors or malformed responses.
        """
        session = self._get_session(method)
        request_id = await self._generate_request_id(method)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or [],
        }
        context = self._context(method)

        try:
            async with session.post(
                self.rpc_endpoint,
                json=payload,
            ) as response:
                if response.status != 200:
                    raise UpstreamError(
                        f"RPC call failed with status {response.status}",
                        status=response.status,
                        **context,
                    )
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                f"RPC call timed out after {self.timeout.total} seconds",
                **context,
            ) from exc
        except aiohttp.ClientError as exc:
            raise UpstreamError(f"RPC transport error: {exc}", **context) from exc
        except ValueError as exc:
            raise UpstreamError(f"Malformed RPC response: {exc}", **context) from exc
        finally:
            await self._remove_request_id(request_id)

        if not isinstance(data, dict):
            raise UpstreamError("Malformed RPC response: expected an object", **context)
        if data.get("error") is not None:
            error = data["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise UpstreamError(f"RPC error: {message}", rpc_error=error, **context)
        if "result" not in data:
            raise UpstreamError("Malformed RPC response: missing result", **context)
        return data["result"]

    async def _call_quantity(self, method: str, params: Optional[List[Any]] = None) -> int:
        result = await self._call(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise UpstreamError(
                f"Malformed RPC response: {result!r} is not a hex quantity",
                **self._context(method),
            ) from exc

    async def call(self, tx: Dict[str, Any], block: str = "latest") -> str:
        """
        Executes a read-only message call without creating a transaction.

        Args:
            tx (Dict[str, Any]): The call object (to, data, optional from/value).
            block (str): Block tag or hex number to execute against.

        Returns:
            str: The 0x-prefixed return data.
        """
        result = await self._call("eth_call", [tx, block])
        if not isinstance(result, str):
            raise UpstreamError(
                "Malformed RPC response: eth_call result is not a string",
                **self._context("eth_call"),
            )
        return result

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._call("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._call("eth_getTransactionReceipt", [tx_hash])

    async def get_block_number(self) -> int:
        """
        Asynchronously retrieves the latest block number.

        This method calls the "eth_blockNumber" RPC method to get the latest block
        number in hexadecimal format and converts it to an integer.

        Returns:
            int: The latest block number as an integer.
        """
        return await self._call_quantity("eth_blockNumber")

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return await self._call_quantity("eth_estimateGas", [tx])

    async def get_chain_id(self) -> int:
        return await self._call_quantity("eth_chainId")
