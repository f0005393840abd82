"""Core data types for history retrieval: cursors, raw transactions, normalized transfers."""

from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, PlainValidator, field_validator
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.domain.address import parse_address
from solhistory.domain.enums import SolanaNetwork
from solhistory.exceptions import InvalidEndpointError

# Validated 32-byte public key; serialized back to base58
AccountRef = Annotated[Pubkey, PlainValidator(parse_address), PlainSerializer(str, return_type=str)]


class PaginationCursor(BaseModel):
    """Page size plus an exclusive upper-bound signature (results are strictly older)."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=20, gt=0)
    before: str | None = None


class Pagination(BaseModel):
    before: str | None = None
    has_more: bool = Field(default=False, serialization_alias="hasMore")


class SignatureRecord(BaseModel):
    """One entry of getSignaturesForAddress, newest-first."""

    model_config = ConfigDict(populate_by_name=True)

    signature: str
    slot: int = 0
    block_time: int | None = Field(default=None, alias="blockTime")
    err: Any = None


class LegacyMessage(BaseModel):
    kind: Literal["legacy"] = "legacy"
    account_keys: list[str]


class VersionedMessage(BaseModel):
    """Message whose account keys need lookup-table resolution. Kept opaque."""

    kind: Literal["versioned"] = "versioned"
    version: int | str | None = None
    raw: dict[str, Any] = {}


Message = Annotated[LegacyMessage | VersionedMessage, Field(discriminator="kind")]


class TransactionEnvelope(BaseModel):
    signatures: list[str] = []
    message: Message


class RawTransaction(BaseModel):
    """A getTransaction result with its message discriminated into legacy or versioned."""

    slot: int | None = None
    block_time: int | None = None
    version: int | str | None = None
    transaction: TransactionEnvelope | None = None
    meta: dict[str, Any] | None = None

    @property
    def signature(self) -> str | None:
        if self.transaction is None or not self.transaction.signatures:
            return None
        return self.transaction.signatures[0]

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> "RawTransaction":
        """Build from a raw JSON-RPC result.

        A message is legacy only when it carries an accountKeys list and the
        transaction version is absent or "legacy".
        """
        version = data.get("version")
        if not isinstance(version, str):
            version = _int_or_none(version)
        envelope = None
        tx = data.get("transaction")
        if isinstance(tx, dict):
            message = tx.get("message")
            keys = message.get("accountKeys") if isinstance(message, dict) else None
            if isinstance(keys, list) and version in (None, "legacy"):
                parsed: LegacyMessage | VersionedMessage = LegacyMessage(
                    account_keys=[_key_to_str(k) for k in keys]
                )
            else:
                parsed = VersionedMessage(
                    version=version,
                    raw=message if isinstance(message, dict) else {},
                )
            envelope = TransactionEnvelope(
                signatures=[s for s in tx.get("signatures") or [] if isinstance(s, str)],
                message=parsed,
            )

        meta = data.get("meta")
        return cls(
            slot=_int_or_none(data.get("slot")),
            block_time=_int_or_none(data.get("blockTime")),
            version=version,
            transaction=envelope,
            meta=meta if isinstance(meta, dict) else None,
        )


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _key_to_str(key: Any) -> str:
    # jsonParsed encoding returns {"pubkey": ..., "signer": ...}
    if isinstance(key, dict):
        return str(key.get("pubkey", ""))
    return str(key)


class TokenAccount(BaseModel):
    """SPL token account owned by a wallet (from getTokenAccountsByOwner, jsonParsed)."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    pubkey: AccountRef
    mint: AccountRef
    ui_amount: Decimal = Decimal(0)


class NativeTransfer(BaseModel):
    """Best-effort SOL transfer: from/to are account keys 0 and 1."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, populate_by_name=True)

    signature: str
    from_address: AccountRef = Field(serialization_alias="from")
    to_address: AccountRef = Field(serialization_alias="to")
    amount: Decimal
    unit: str = "SOL"
    timestamp: str

    @property
    def display_amount(self) -> str:
        return f"{self.amount.normalize():f} {self.unit}"


class TokenTransfer(NativeTransfer):
    """SPL token transfer; amount is the post-transfer UI balance of the matching entry."""

    token_mint: AccountRef = Field(serialization_alias="tokenMint")
    token_type: str = Field(serialization_alias="tokenType")


TransactionEntry = RawTransaction | TokenTransfer | NativeTransfer | None


class TransactionsPage(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    transactions: list[TransactionEntry] = []
    pagination: Pagination = Field(default_factory=Pagination)


class RPCEndpoint(BaseModel):
    """One RPC URL. Weight is carried but selection is plain round-robin."""

    model_config = ConfigDict(frozen=True)

    url: str
    weight: int = 1


class EndpointConfig(BaseModel):
    """Ordered, non-empty endpoint list per network."""

    networks: dict[SolanaNetwork, list[RPCEndpoint]]

    @field_validator("networks")
    @classmethod
    def _non_empty(cls, v: dict[SolanaNetwork, list[RPCEndpoint]]) -> dict[SolanaNetwork, list[RPCEndpoint]]:
        for network, endpoints in v.items():
            if not endpoints:
                raise ValueError(f"No RPC endpoints configured for {network.value}")
        return v

    def endpoints_for(self, network: SolanaNetwork | str) -> list[RPCEndpoint]:
        try:
            return self.networks[SolanaNetwork(network)]
        except (KeyError, ValueError) as e:
            raise InvalidEndpointError(f"No RPC endpoints configured for network: {network}") from e


def cluster_api_url(network: SolanaNetwork) -> str:
    return f"https://api.{network.value}.solana.com"


DEFAULT_ENDPOINT_CONFIG = EndpointConfig(
    networks={network: [RPCEndpoint(url=cluster_api_url(network), weight=1)] for network in SolanaNetwork}
)
