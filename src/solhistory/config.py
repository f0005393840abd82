from pydantic_settings import BaseSettings, SettingsConfigDict

from solhistory.domain.enums import SolanaNetwork
from solhistory.domain.models import EndpointConfig, RPCEndpoint, cluster_api_url
from solhistory.infra.retry import RetryPolicy


class Settings(BaseSettings):
    """Environment-driven defaults for applications embedding the library.

    The history functions never read these; they take an EndpointConfig and
    RetryPolicy explicitly. Comma-separated URLs rotate round-robin.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SOLHISTORY_", extra="ignore")

    solana_rpc_url: str = cluster_api_url(SolanaNetwork.MAINNET_BETA)
    solana_devnet_rpc_url: str = cluster_api_url(SolanaNetwork.DEVNET)
    solana_testnet_rpc_url: str = cluster_api_url(SolanaNetwork.TESTNET)
    default_network: SolanaNetwork = SolanaNetwork.MAINNET_BETA
    rpc_rate_per_second: float | None = None
    rpc_timeout: float = 30.0
    retry_enabled: bool = True
    retry_max_attempts: int = 4
    retry_base_delay: float = 0.5  # seconds
    page_limit: int = 20

    def endpoint_config(self) -> EndpointConfig:
        urls = {
            SolanaNetwork.MAINNET_BETA: self.solana_rpc_url,
            SolanaNetwork.DEVNET: self.solana_devnet_rpc_url,
            SolanaNetwork.TESTNET: self.solana_testnet_rpc_url,
        }
        return EndpointConfig(networks={
            network: [RPCEndpoint(url=url.strip()) for url in value.split(",") if url.strip()]
            for network, value in urls.items()
        })

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            enabled=self.retry_enabled,
            max_attempts=self.retry_max_attempts,
            base_delay=self.retry_base_delay,
        )
