"""Paged wallet history: native SOL, a single SPL token, or every held token merged."""

import asyncio
import logging
from collections.abc import Mapping

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.domain.address import parse_address
from solhistory.domain.enums import SolanaNetwork
from solhistory.domain.models import (
    DEFAULT_ENDPOINT_CONFIG,
    EndpointConfig,
    Pagination,
    PaginationCursor,
    RawTransaction,
    TransactionEntry,
    TransactionsPage,
)
from solhistory.domain.tokens import TOKEN_PROGRAM_ID, TokenSelection, label_for_mint, resolve_token_type
from solhistory.history.fetchers import fetch_transactions, list_signatures
from solhistory.history.normalizer import normalize_native, normalize_token
from solhistory.infra.retry import RetryPolicy, with_retry
from solhistory.infra.solana.endpoint_pool import EndpointPool
from solhistory.infra.solana.rpc_client import SolanaRPCClient

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = SolanaNetwork.MAINNET_BETA


class HistoryService:
    """Fetches and merges transaction pages through an EndpointPool.

    Pagination rules differ per path and are kept as-is:
    - native: ``before`` is the last listed signature, ``has_more`` is page size == limit
    - token: one full page per token account, concatenated; ``before`` is the last
      fetched transaction's own signature, ``has_more`` compares the total to limit
    - all tokens: per-token pages merged, sorted by block time descending, truncated to limit
    """

    def __init__(
        self,
        pool: EndpointPool,
        retry: RetryPolicy = RetryPolicy(),
        token_mapping: Mapping[str, str | None] | None = None,
    ) -> None:
        self._pool = pool
        self._retry = retry
        self._token_mapping = token_mapping

    async def get_transactions(
        self,
        address: str,
        token_type: str,
        network: SolanaNetwork | str = DEFAULT_NETWORK,
        cursor: PaginationCursor | None = None,
        token_mapping: Mapping[str, str | None] | None = None,
        normalize: bool = False,
    ) -> TransactionsPage:
        cursor = cursor or PaginationCursor()
        owner = parse_address(address)
        selection = resolve_token_type(token_type, _mapping(token_mapping, self._token_mapping))
        client = self._pool.acquire(network)

        page = await self._page_for(client, owner, selection, cursor)
        if normalize:
            page.transactions = [_normalize(tx, selection) for tx in page.transactions]
        return page

    async def get_all_token_transactions(
        self,
        address: str,
        network: SolanaNetwork | str = DEFAULT_NETWORK,
        cursor: PaginationCursor | None = None,
        token_mapping: Mapping[str, str | None] | None = None,
        normalize: bool = False,
    ) -> TransactionsPage:
        cursor = cursor or PaginationCursor()
        owner = parse_address(address)
        client = self._pool.acquire(network)

        selections = await self.held_tokens(client, owner, _mapping(token_mapping, self._token_mapping))
        pages = await asyncio.gather(
            *(self._page_or_empty(client, owner, selection, cursor) for selection in selections)
        )

        combined = [
            (selection, tx)
            for selection, page in zip(selections, pages)
            for tx in page.transactions
        ]
        combined.sort(key=lambda pair: _block_time(pair[1]), reverse=True)
        truncated = combined[: cursor.limit]

        last = truncated[-1][1] if truncated else None
        transactions: list[TransactionEntry] = [
            _normalize(tx, selection) if normalize else tx for selection, tx in truncated
        ]
        logger.info(
            "Merged %d transactions across %d token types for %s (kept %d)",
            len(combined), len(selections), owner, len(truncated),
        )
        return TransactionsPage(
            transactions=transactions,
            pagination=Pagination(
                before=last.signature if last is not None else None,
                has_more=len(truncated) == cursor.limit,
            ),
        )

    async def get_native_transactions(
        self, client: SolanaRPCClient, account: Pubkey, cursor: PaginationCursor
    ) -> TransactionsPage:
        signatures = await list_signatures(client, account, cursor, self._retry)
        transactions = await fetch_transactions(client, signatures, self._retry)

        logger.info("Fetched %d SOL transactions for %s", len(transactions), account)
        return TransactionsPage(
            transactions=transactions,
            pagination=Pagination(
                before=signatures[-1].signature if signatures else None,
                has_more=len(signatures) == cursor.limit,
            ),
        )

    async def get_token_transactions(
        self,
        client: SolanaRPCClient,
        owner: Pubkey,
        mint: Pubkey,
        cursor: PaginationCursor,
    ) -> TransactionsPage:
        token_accounts = await with_retry(
            lambda: client.get_token_accounts_by_owner(owner, TOKEN_PROGRAM_ID, mint=mint),
            self._retry,
        )

        all_transactions: list[RawTransaction | None] = []
        for token_account in token_accounts:
            signatures = await list_signatures(client, token_account.pubkey, cursor, self._retry)
            all_transactions.extend(await fetch_transactions(client, signatures, self._retry))

        logger.info(
            "Fetched %d transactions for mint %s across %d token accounts of %s",
            len(all_transactions), mint, len(token_accounts), owner,
        )
        last = all_transactions[-1] if all_transactions else None
        return TransactionsPage(
            transactions=all_transactions,
            pagination=Pagination(
                before=last.signature if last is not None else None,
                has_more=len(all_transactions) == cursor.limit,
            ),
        )

    async def held_tokens(
        self,
        client: SolanaRPCClient,
        owner: Pubkey,
        token_mapping: Mapping[str, str | None] | None = None,
    ) -> list[TokenSelection]:
        """Native SOL (when funded) plus every mint held with a positive balance."""
        balance = await with_retry(lambda: client.get_balance(owner), self._retry)
        accounts = await with_retry(
            lambda: client.get_token_accounts_by_owner(owner, TOKEN_PROGRAM_ID), self._retry
        )

        selections: list[TokenSelection] = []
        if balance > 0:
            selections.append(resolve_token_type("sol"))

        seen: set[str] = set()
        for account in accounts:
            mint = str(account.mint)
            if account.ui_amount <= 0 or mint in seen:
                continue
            seen.add(mint)
            selections.append(TokenSelection(label=label_for_mint(account.mint, token_mapping), mint=account.mint))
        return selections

    async def _page_for(
        self,
        client: SolanaRPCClient,
        owner: Pubkey,
        selection: TokenSelection,
        cursor: PaginationCursor,
    ) -> TransactionsPage:
        if selection.mint is None:
            return await self.get_native_transactions(client, owner, cursor)
        return await self.get_token_transactions(client, owner, selection.mint, cursor)

    async def _page_or_empty(
        self,
        client: SolanaRPCClient,
        owner: Pubkey,
        selection: TokenSelection,
        cursor: PaginationCursor,
    ) -> TransactionsPage:
        try:
            return await self._page_for(client, owner, selection, cursor)
        except Exception:
            logger.exception("Fetching %s transactions failed for %s, skipping", selection.label, owner)
            return TransactionsPage()


async def get_transactions(
    address: str,
    token_type: str,
    network: SolanaNetwork | str = DEFAULT_NETWORK,
    cursor: PaginationCursor | None = None,
    token_mapping: Mapping[str, str | None] | None = None,
    endpoint_config: EndpointConfig = DEFAULT_ENDPOINT_CONFIG,
    *,
    normalize: bool = False,
    retry: RetryPolicy = RetryPolicy(),
    pool: EndpointPool | None = None,
) -> TransactionsPage:
    """One page of history for ``address`` in ``token_type`` ("sol" or a mapped label)."""
    if pool is not None:
        return await HistoryService(pool, retry).get_transactions(
            address, token_type, network, cursor, token_mapping, normalize
        )
    async with EndpointPool(endpoint_config) as owned_pool:
        return await HistoryService(owned_pool, retry).get_transactions(
            address, token_type, network, cursor, token_mapping, normalize
        )


async def get_all_token_transactions(
    address: str,
    network: SolanaNetwork | str = DEFAULT_NETWORK,
    cursor: PaginationCursor | None = None,
    token_mapping: Mapping[str, str | None] | None = None,
    endpoint_config: EndpointConfig = DEFAULT_ENDPOINT_CONFIG,
    *,
    normalize: bool = False,
    retry: RetryPolicy = RetryPolicy(),
    pool: EndpointPool | None = None,
) -> TransactionsPage:
    """One merged page across native SOL and every held token, newest first."""
    if pool is not None:
        return await HistoryService(pool, retry).get_all_token_transactions(
            address, network, cursor, token_mapping, normalize
        )
    async with EndpointPool(endpoint_config) as owned_pool:
        return await HistoryService(owned_pool, retry).get_all_token_transactions(
            address, network, cursor, token_mapping, normalize
        )


def _mapping(
    explicit: Mapping[str, str | None] | None, fallback: Mapping[str, str | None] | None
) -> Mapping[str, str | None] | None:
    return explicit if explicit is not None else fallback


def _block_time(tx: RawTransaction | None) -> int:
    if tx is None:
        return 0
    return tx.block_time or 0


def _normalize(tx: TransactionEntry, selection: TokenSelection) -> TransactionEntry:
    if not isinstance(tx, RawTransaction):
        return tx
    if selection.mint is None:
        return normalize_native(tx)
    return normalize_token(tx, selection.mint, selection.label)
