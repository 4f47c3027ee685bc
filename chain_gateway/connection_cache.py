import asyncio
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from chain_gateway.chain_client import ChainClient
from chain_gateway.endpoint_registry import EndpointRegistry
from chain_gateway.interfaces import InterfaceSource, StaticInterfaceSource
from chain_gateway.rpc_client import RPCClient

ClientFactory = Callable[[str, str], ChainClient]


class ConnectionCache:
    """
    Keyed store of chain identifier to live ChainClient.

    ConnectionCache lazily creates one ChainClient per configured chain on first
    use and hands the same instance to every later caller until the cache is
    cleared. Construction for a key is serialized behind a per-key lock, so
    concurrent first requests for the same chain build exactly one client, while
    requests for different chains never wait on each other.

    Methods:
        get_connection(chain_id: Any) -> ChainClient:
            Returns the cached client for the chain, creating it on a miss.
        clear_cache() -> None:
            Closes and drops every cached client.
        close() -> None:
            Releases all resources on shutdown.
        cached_chain_ids() -> List[str]:
            Lists the keys that currently hold a live client.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        client_factory: Optional[ClientFactory] = None,
        interface_source: Optional[InterfaceSource] = None,
        verify_chain: bool = False,
        rpc_timeout: Optional[float] = None,
    ) -> None:
        """
        Initializes the ConnectionCache instance.

        Args:
            registry (EndpointRegistry): Resolves chain ids to endpoints.
            client_factory (Optional[ClientFactory]): Builds a ChainClient from a
                chain key and endpoint URL. Defaults to an aiohttp RPCClient backed
                client.
            interface_source (Optional[InterfaceSource]): Source of contract
                interfaces handed to the default factory.
            verify_chain (bool): Probe each new client with ``connect()`` before
                caching it.
            rpc_timeout (Optional[float]): Per-call timeout for the default
                factory. Defaults to settings.rpc_timeout.

        Attributes:
            _connections (Dict[str, ChainClient]): Live clients by chain key.
            _key_locks (Dict[str, asyncio.Lock]): One construction lock per key.
            lock (asyncio.Lock): Guards the key lock table and bulk mutations.
            constructed (int): Number of clients built over the cache lifetime.
            _generation (int): Bumped by clear_cache; a client built across a
                clear is discarded instead of installed.
        """
        self.registry = registry
        self.interface_source = interface_source or StaticInterfaceSource()
        self.client_factory = client_factory or self._default_factory
        self.verify_chain = verify_chain
        self.rpc_timeout = rpc_timeout
        self._connections: Dict[str, ChainClient] = {}
        self._key_locks: Dict[str, asyncio.Lock] = {}
        self.lock = asyncio.Lock()
        self.constructed = 0
        self._generation = 0

    def _default_factory(self, chain_id: str, endpoint: str) -> ChainClient:
        transport = RPCClient(
            endpoint,
            chain_id,
            timeout=self.rpc_timeout,
        )
        return ChainClient(chain_id, endpoint, transport, self.interface_source)

    def __len__(self) -> int:
        return len(self._connections)

    def cached_chain_ids(self) -> List[str]:
        return list(self._connections)

    async def _lock_for(self, key: str) -> asyncio.Lock:
        async with self.lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = asyncio.Lock()
            return key_lock

    async def get_connection(self, chain_id: Any = None) -> ChainClient:
        """
        Return the client for a chain, creating and caching it on first use.

        Unknown or absent chain ids share the "default" client.

        Args:
            chain_id (Any): The chain identifier, string or number.

        Returns:
            ChainClient: The cached client bound to the chain's endpoint.

        Raises:
            ConfigurationError: If the endpoint cannot be used to build a client.
            UpstreamError: If ``verify_chain`` is set and the probe fails.
        """
        key, endpoint = self.registry.resolve(chain_id)

        client = self._connections.get(key)
        if client is not None:
            return client

        key_lock = await self._lock_for(key)
        async with key_lock:
            while True:
                client = self._connections.get(key)
                if client is not None:
                    return client

                generation = self._generation
                client = self.client_factory(key, endpoint)
                self.constructed += 1
                if self.verify_chain:
                    try:
                        await client.connect()
                    except BaseException:
                        await client.close()
                        raise

                if generation == self._generation:
                    break
                await client.close()
                logger.info(f"Discarded connection for chain {key} built before a cache clear")

            self._connections[key] = client
            logger.info(f"Created connection for chain {key}")
            return client

    async def clear_cache(self) -> None:
        """
        Close and drop every cached client.

        Subsequent get_connection calls re-resolve endpoints and build new clients.
        """
        async with self.lock:
            connections = list(self._connections.values())
            self._connections.clear()
            self._generation += 1

        for client in connections:
            await client.close()
        logger.info(f"Cleared {len(connections)} cached connections")

    async def close(self) -> None:
        await self.clear_cache()
