from dependency_injector import containers, providers

from solhistory.config import Settings
from solhistory.history.aggregator import HistoryService
from solhistory.infra.http.rate_limited_client import RateLimitedClient
from solhistory.infra.solana.endpoint_pool import EndpointPool


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings)

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.rpc_rate_per_second,
        timeout=settings.provided.rpc_timeout,
    )

    endpoint_pool = providers.Singleton(
        EndpointPool,
        config=settings.provided.endpoint_config.call(),
        http_client=http_client,
    )

    history_service = providers.Factory(
        HistoryService,
        pool=endpoint_pool,
        retry=settings.provided.retry_policy.call(),
    )
