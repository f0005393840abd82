"""Signature listing and transaction fetch, each wrapped in the retry policy."""

import asyncio

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.domain.models import PaginationCursor, RawTransaction, SignatureRecord
from solhistory.infra.retry import RetryPolicy, with_retry
from solhistory.infra.solana.rpc_client import SolanaRPCClient

MAX_SUPPORTED_TRANSACTION_VERSION = 0


async def list_signatures(
    client: SolanaRPCClient,
    account: Pubkey,
    cursor: PaginationCursor,
    policy: RetryPolicy = RetryPolicy(),
) -> list[SignatureRecord]:
    """One page of signatures for ``account``, newest-first as returned by the ledger."""
    return await with_retry(
        lambda: client.get_signatures_for_address(account, limit=cursor.limit, before=cursor.before),
        policy,
    )


async def fetch_transaction(
    client: SolanaRPCClient,
    signature: str,
    policy: RetryPolicy = RetryPolicy(),
    max_supported_version: int = MAX_SUPPORTED_TRANSACTION_VERSION,
) -> RawTransaction | None:
    """Resolve one signature. None means not found or pruned."""
    return await with_retry(
        lambda: client.get_transaction(signature, max_supported_version=max_supported_version),
        policy,
    )


async def fetch_transactions(
    client: SolanaRPCClient,
    signatures: list[SignatureRecord],
    policy: RetryPolicy = RetryPolicy(),
) -> list[RawTransaction | None]:
    """Fetch every signature concurrently, preserving listing order."""
    return list(await asyncio.gather(
        *(fetch_transaction(client, sig.signature, policy) for sig in signatures)
    ))
