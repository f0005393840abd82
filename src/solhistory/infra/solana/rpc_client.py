"""Solana JSON-RPC client: signatures, transactions, balances and token accounts."""

import logging
from decimal import Decimal, InvalidOperation

import httpx
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.domain.models import RawTransaction, SignatureRecord, TokenAccount
from solhistory.exceptions import InvalidEndpointError, RateLimitedError, RPCRequestError
from solhistory.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

RATE_LIMIT_CODE = 429


class SolanaRPCClient:
    """Minimal Solana JSON-RPC client bound to one endpoint URL.

    Does not retry. Rate limiting surfaces as RateLimitedError so callers can
    wrap individual calls in a retry policy.
    """

    def __init__(self, rpc_url: str, http_client: RateLimitedClient) -> None:
        self._rpc_url = _validate_url(rpc_url)
        self._http = http_client

    @property
    def url(self) -> str:
        return self._rpc_url

    async def _call(self, method: str, params: list) -> dict | list | int | str | None:
        """Execute a JSON-RPC call and return the result field."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        try:
            resp = await self._http.post(self._rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise RPCRequestError(f"Solana RPC transport error ({method}): {e}") from e

        if resp.status_code == RATE_LIMIT_CODE:
            raise RateLimitedError(f"Solana RPC rate limited ({method}) at {self._rpc_url}")
        if resp.status_code >= 400:
            raise RPCRequestError(
                f"Solana RPC HTTP {resp.status_code} ({method})", code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise RPCRequestError(f"Solana RPC returned invalid JSON ({method})") from e

        if "error" in data:
            error = data["error"]
            code = error.get("code") if isinstance(error, dict) else None
            msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            if code == RATE_LIMIT_CODE:
                raise RateLimitedError(f"Solana RPC rate limited ({method}): {msg}")
            raise RPCRequestError(f"Solana RPC error ({method}): {msg}", code=code)

        return data.get("result")

    async def get_signatures_for_address(
        self,
        address: Pubkey | str,
        limit: int = 1000,
        before: str | None = None,
    ) -> list[SignatureRecord]:
        """Fetch signatures touching an address, newest-first.

        ``before`` is an exclusive upper bound; omitted when None.
        """
        opts: dict = {"limit": limit}
        if before is not None:
            opts["before"] = before

        result = await self._call("getSignaturesForAddress", [str(address), opts])
        if not result:
            return []
        return [SignatureRecord.model_validate(item) for item in result]  # type: ignore[union-attr]

    async def get_transaction(
        self, signature: str, max_supported_version: int = 0
    ) -> RawTransaction | None:
        """Fetch a transaction by signature. None when not found or pruned."""
        opts = {
            "encoding": "json",
            "maxSupportedTransactionVersion": max_supported_version,
        }
        result = await self._call("getTransaction", [signature, opts])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise RPCRequestError(f"Unexpected getTransaction result for {signature}")
        return RawTransaction.from_rpc(result)

    async def get_balance(self, address: Pubkey | str) -> int:
        """Get lamport balance."""
        result = await self._call("getBalance", [str(address)])
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)  # type: ignore[arg-type]

    async def get_token_accounts_by_owner(
        self,
        owner: Pubkey | str,
        program_id: Pubkey | str,
        mint: Pubkey | str | None = None,
    ) -> list[TokenAccount]:
        """List SPL token accounts of ``owner``, filtered by mint when given."""
        account_filter = {"mint": str(mint)} if mint is not None else {"programId": str(program_id)}
        result = await self._call(
            "getTokenAccountsByOwner",
            [str(owner), account_filter, {"encoding": "jsonParsed"}],
        )
        value = result.get("value", []) if isinstance(result, dict) else []

        accounts = []
        for item in value:
            # jsonParsed returns data as a dict; base64 fallback returns a list
            data = (item.get("account") or {}).get("data")
            info = data.get("parsed", {}).get("info", {}) if isinstance(data, dict) else {}
            account_mint = info.get("mint") or (str(mint) if mint is not None else None)
            if account_mint is None:
                logger.warning("Token account %s has no parsed mint, skipping", item.get("pubkey"))
                continue
            accounts.append(TokenAccount(
                pubkey=item["pubkey"],
                mint=account_mint,
                ui_amount=_ui_amount(info.get("tokenAmount", {})),
            ))
        return accounts


def _ui_amount(token_amount: dict) -> Decimal:
    raw = token_amount.get("uiAmountString") or token_amount.get("uiAmount") or "0"
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        return Decimal(0)


def _validate_url(rpc_url: str) -> str:
    try:
        url = httpx.URL(rpc_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidEndpointError(f"Malformed RPC URL: {rpc_url!r}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidEndpointError(f"Malformed RPC URL: {rpc_url!r}")
    return rpc_url
