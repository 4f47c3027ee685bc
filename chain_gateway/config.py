from typing import Dict, List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

DEFAULT_API_KEY = "test-api-key"


class Settings(BaseSettings):
    """Settings configuration class for the gateway service."""

    app_name: str = "chain-gateway"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 3001
    environment: Literal["development", "production", "test"] = "development"
    cors_origins: List[str] = ["*"]
    prometheus_enabled: bool = True

    # Rate Limit Configuration (per client address)
    rate_limit_enabled: bool = True
    rate_limit: str = "100/15minutes"

    # Logging Configuration
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Auth Configuration
    api_key: str = DEFAULT_API_KEY

    # RPC Configuration
    rpc_timeout: float = 10.0  # Seconds per upstream call
    verify_chain_on_connect: bool = False
    default_chain_id: int = 1

    mainnet_rpc_url: str = "https://eth-mainnet.alchemyapi.io/v2/demo"
    goerli_rpc_url: str = "https://eth-goerli.alchemyapi.io/v2/demo"
    sepolia_rpc_url: str = "https://eth-sepolia.alchemyapi.io/v2/demo"
    arbitrum_rpc_url: str = "https://arb-mainnet.g.alchemy.com/v2/demo"
    optimism_rpc_url: str = "https://opt-mainnet.g.alchemy.com/v2/demo"
    polygon_rpc_url: str = "https://polygon-mainnet.g.alchemy.com/v2/demo"
    bsc_rpc_url: str = "https://bsc-dataseed.binance.org"
    avalanche_rpc_url: str = "https://api.avax.network/ext/bc/C/rpc"
    local_rpc_url: str = "http://127.0.0.1:8545"
    default_rpc_url: str = "https://eth-mainnet.alchemyapi.io/v2/demo"

    # Additional chains, e.g. GATEWAY_EXTRA_RPC_URLS='{"8453": "https://..."}'
    extra_rpc_urls: Dict[str, str] = {}

    @property
    def rpc_endpoints(self) -> Dict[str, str]:
        """
        Assemble the chain id to RPC URL mapping from settings.

        Entries in ``extra_rpc_urls`` override the built-in chains.

        :return: chain id to URL mapping, always containing "default".
        """
        endpoints = {
            "1": self.mainnet_rpc_url,
            "5": self.goerli_rpc_url,
            "11155111": self.sepolia_rpc_url,
            "42161": self.arbitrum_rpc_url,
            "10": self.optimism_rpc_url,
            "137": self.polygon_rpc_url,
            "56": self.bsc_rpc_url,
            "43114": self.avalanche_rpc_url,
            "31337": self.local_rpc_url,
            "default": self.default_rpc_url,
        }
        endpoints.update(
            {str(chain_id).strip(): url for chain_id, url in self.extra_rpc_urls.items()},
        )
        return endpoints

    @property
    def base_url(self) -> URL:
        """
        Assemble the public base URL of the service.

        :return: service URL.
        """
        return URL.build(scheme="http", host=self.host, port=self.port)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GATEWAY_",
        env_file_encoding="utf-8",
    )


settings = Settings()
