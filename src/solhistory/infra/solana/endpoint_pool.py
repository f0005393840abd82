"""Round-robin pool of Solana RPC clients per network."""

import logging
import threading

from solhistory.domain.enums import SolanaNetwork
from solhistory.domain.models import DEFAULT_ENDPOINT_CONFIG, EndpointConfig
from solhistory.infra.http.rate_limited_client import RateLimitedClient
from solhistory.infra.solana.rpc_client import SolanaRPCClient

logger = logging.getLogger(__name__)


class EndpointPool:
    """Hands out one cached SolanaRPCClient per (network, url), rotating endpoints in order.

    Each acquire() returns the endpoint at the network's current index and then
    advances it modulo the endpoint count. Weights are not used for selection.
    """

    def __init__(
        self,
        config: EndpointConfig = DEFAULT_ENDPOINT_CONFIG,
        http_client: RateLimitedClient | None = None,
    ) -> None:
        self._config = config
        self._owns_http = http_client is None
        self._http = http_client or RateLimitedClient()
        self._clients: dict[tuple[SolanaNetwork, str], SolanaRPCClient] = {}
        self._index: dict[SolanaNetwork, int] = {}
        self._lock = threading.Lock()

    def acquire(self, network: SolanaNetwork | str) -> SolanaRPCClient:
        endpoints = self._config.endpoints_for(network)
        network = SolanaNetwork(network)

        with self._lock:
            current = self._index.get(network, 0)
            self._index[network] = (current + 1) % len(endpoints)
            endpoint = endpoints[current]

            key = (network, endpoint.url)
            client = self._clients.get(key)
            if client is None:
                # Malformed URLs raise here and are not cached
                client = SolanaRPCClient(endpoint.url, self._http)
                self._clients[key] = client
                logger.debug("Created RPC client for %s at %s", network.value, endpoint.url)
        return client

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.close()

    async def __aenter__(self) -> "EndpointPool":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
