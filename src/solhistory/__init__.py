"""Solana wallet transaction history: paged retrieval and transfer normalization."""

from solhistory.domain.enums import SolanaNetwork
from solhistory.domain.models import (
    EndpointConfig,
    NativeTransfer,
    PaginationCursor,
    RawTransaction,
    RPCEndpoint,
    TokenTransfer,
    TransactionsPage,
)
from solhistory.domain.tokens import DEFAULT_TOKEN_MAPPING
from solhistory.history.aggregator import HistoryService, get_all_token_transactions, get_transactions
from solhistory.history.normalizer import normalize_native, normalize_token
from solhistory.infra.retry import RetryPolicy
from solhistory.infra.solana.endpoint_pool import EndpointPool

__all__ = [
    "DEFAULT_TOKEN_MAPPING",
    "EndpointConfig",
    "EndpointPool",
    "HistoryService",
    "NativeTransfer",
    "PaginationCursor",
    "RPCEndpoint",
    "RawTransaction",
    "RetryPolicy",
    "SolanaNetwork",
    "TokenTransfer",
    "TransactionsPage",
    "get_all_token_transactions",
    "get_transactions",
    "normalize_native",
    "normalize_token",
]
