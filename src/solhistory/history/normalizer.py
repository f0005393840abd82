"""Reduce raw transactions to simplified native or token transfer records.

Only legacy messages are interpreted. Amounts and counterparties are heuristics:
native amount is the balance delta of account key 0, ``from``/``to`` are account
keys 0 and 1. Anything that cannot be read yields None instead of raising.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.domain.address import parse_address
from solhistory.domain.models import LegacyMessage, NativeTransfer, RawTransaction, TokenTransfer
from solhistory.exceptions import InvalidAddressError, MalformedRecordError

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = Decimal(1_000_000_000)
SOL_SYMBOL = "SOL"

_EXTRACTION_ERRORS = (
    AttributeError,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
    InvalidOperation,
    InvalidAddressError,
)


def normalize_native(tx: RawTransaction | None) -> NativeTransfer | None:
    message = _legacy_message(tx)
    if message is None:
        if tx is not None and tx.meta is not None and tx.transaction is not None:
            logger.warning(
                "Versioned transactions are not supported for native processing: %s", tx.signature
            )
        return None

    assert tx is not None and tx.meta is not None
    try:
        pre_balances = tx.meta["preBalances"]
        post_balances = tx.meta["postBalances"]
        lamports = abs(int(pre_balances[0]) - int(post_balances[0]))
        return NativeTransfer(
            signature=_signature(tx),
            from_address=_account_key(message, 0),
            to_address=_account_key(message, 1),
            amount=Decimal(lamports) / LAMPORTS_PER_SOL,
            unit=SOL_SYMBOL,
            timestamp=format_block_time(tx.block_time),
        )
    except (*_EXTRACTION_ERRORS, MalformedRecordError) as e:
        logger.warning("Skipping malformed transaction %s: %s", tx.signature, e)
        return None


def normalize_token(tx: RawTransaction | None, token_mint: Pubkey | str, token_type: str) -> TokenTransfer | None:
    """Token transfer for ``token_mint``, or None if the transaction did not touch it.

    Amount is the UI amount of the first post-transfer token balance for the mint.
    """
    message = _legacy_message(tx)
    if message is None:
        return None

    assert tx is not None and tx.meta is not None
    mint = str(token_mint)
    try:
        entry = _find_token_balance(tx.meta, mint)
        if entry is None:
            return None
        return TokenTransfer(
            signature=_signature(tx),
            from_address=_account_key(message, 0),
            to_address=_account_key(message, 1),
            amount=_ui_amount(entry),
            unit=token_type,
            timestamp=format_block_time(tx.block_time),
            token_mint=mint,
            token_type=token_type,
        )
    except (*_EXTRACTION_ERRORS, MalformedRecordError) as e:
        logger.warning("Skipping malformed transaction %s: %s", tx.signature, e)
        return None


def format_block_time(block_time: int | None) -> str:
    """Human-readable UTC time. Missing block time is the epoch."""
    return datetime.fromtimestamp(block_time or 0, UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def _legacy_message(tx: RawTransaction | None) -> LegacyMessage | None:
    if tx is None or tx.meta is None or tx.transaction is None:
        return None
    message = tx.transaction.message
    if isinstance(message, LegacyMessage):
        return message
    return None


def _signature(tx: RawTransaction) -> str:
    signature = tx.signature
    if signature is None:
        raise MalformedRecordError("transaction has no signatures")
    return signature


def _account_key(message: LegacyMessage, index: int) -> Pubkey:
    if index >= len(message.account_keys):
        raise MalformedRecordError(f"account key {index} missing")
    return parse_address(message.account_keys[index])


def _find_token_balance(meta: dict[str, Any], mint: str) -> dict[str, Any] | None:
    balances = meta.get("postTokenBalances") or []
    if not isinstance(balances, list):
        raise MalformedRecordError("postTokenBalances is not a list")
    for balance in balances:
        if isinstance(balance, dict) and balance.get("mint") == mint:
            return balance
    return None


def _ui_amount(entry: dict[str, Any]) -> Decimal:
    token_amount = entry.get("uiTokenAmount")
    if not isinstance(token_amount, dict):
        raise MalformedRecordError("uiTokenAmount is not an object")
    value = token_amount.get("uiAmount")
    if value is None:
        value = token_amount.get("uiAmountString")
    if value is None:
        raise MalformedRecordError("uiTokenAmount has no uiAmount")
    return Decimal(str(value))
