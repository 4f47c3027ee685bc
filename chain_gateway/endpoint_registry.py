from types import MappingProxyType
from typing import Any, List, Mapping, Tuple

from loguru import logger

from chain_gateway.config import Settings
from chain_gateway.exceptions import ConfigurationError
from chain_gateway.rpc_client import validate_endpoint

DEFAULT_CHAIN = "default"


def normalize_chain_id(chain_id: Any) -> str:
    """
    Normalize a chain identifier to its canonical string form.

    Args:
        chain_id (Any): A chain id as received from a request, e.g. 1, "1" or None.

    Returns:
        str: The stringified identifier, "default" when absent or empty.
    """
    if chain_id is None:
        return DEFAULT_CHAIN
    normalized = str(chain_id).strip()
    return normalized or DEFAULT_CHAIN


class EndpointRegistry:
    """
    Static mapping of chain identifier to RPC endpoint URL.

    The mapping is validated and frozen at construction; lookups never raise and
    unknown identifiers degrade to the "default" endpoint.
    """

    def __init__(self, endpoints: Mapping[Any, str]) -> None:
        """
        Args:
            endpoints (Mapping[Any, str]): chain id to URL mapping. Must contain
                                           a "default" entry.

        Raises:
            ConfigurationError: If "default" is missing or a URL is malformed.
        """
        normalized = {normalize_chain_id(key): url for key, url in endpoints.items()}
        if DEFAULT_CHAIN not in normalized:
            raise ConfigurationError("No default RPC endpoint configured")
        for chain_id, url in normalized.items():
            try:
                validate_endpoint(url)
            except ConfigurationError as exc:
                exc.context["chain_id"] = chain_id
                raise
        self._endpoints: Mapping[str, str] = MappingProxyType(normalized)
        logger.info(f"Loaded RPC endpoints for chains: {sorted(self._endpoints)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "EndpointRegistry":
        return cls(settings.rpc_endpoints)

    @property
    def endpoints(self) -> Mapping[str, str]:
        return self._endpoints

    def __contains__(self, chain_id: Any) -> bool:
        return normalize_chain_id(chain_id) in self._endpoints

    def chain_ids(self) -> List[str]:
        return list(self._endpoints)

    def resolve(self, chain_id: Any) -> Tuple[str, str]:
        """
        Resolve a chain identifier to its configured key and endpoint.

        Args:
            chain_id (Any): The requested chain identifier.

        Returns:
            Tuple[str, str]: The configured key ("default" for unknown or absent
                             identifiers) and its endpoint URL.
        """
        key = normalize_chain_id(chain_id)
        if key not in self._endpoints:
            logger.debug(f"Unknown chain {key}, falling back to {DEFAULT_CHAIN}")
            key = DEFAULT_CHAIN
        return key, self._endpoints[key]

    def resolve_endpoint(self, chain_id: Any) -> str:
        return self.resolve(chain_id)[1]
