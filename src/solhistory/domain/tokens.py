"""Token label → mint mapping and token-type resolution."""

from collections.abc import Mapping
from dataclasses import dataclass

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.domain.address import parse_address
from solhistory.exceptions import InvalidAddressError, UnsupportedTokenTypeError

NATIVE_LABEL = "sol"

# SPL Token program
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")

# Label → mint address; None = native SOL
DEFAULT_TOKEN_MAPPING: dict[str, str | None] = {
    "sol": None,
    "usdc_sol": "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
}


@dataclass(frozen=True)
class TokenSelection:
    label: str
    mint: Pubkey | None  # None selects the native path

    @property
    def is_native(self) -> bool:
        return self.mint is None


def resolve_token_type(token_type: str, mapping: Mapping[str, str | None] | None = None) -> TokenSelection:
    """Resolve a label (case-insensitive) to the native path or a token mint.

    "sol" always selects native SOL. Any other label must map to a mint.
    """
    label = token_type.lower()
    if label == NATIVE_LABEL:
        return TokenSelection(label=label, mint=None)

    source = mapping if mapping is not None else DEFAULT_TOKEN_MAPPING
    mint = {k.lower(): v for k, v in source.items()}.get(label)
    if not mint:
        raise UnsupportedTokenTypeError(f"Unsupported token type: {token_type}")
    try:
        return TokenSelection(label=label, mint=parse_address(mint))
    except InvalidAddressError as e:
        raise UnsupportedTokenTypeError(f"Token type {token_type} maps to an invalid mint: {mint}") from e


def label_for_mint(mint: Pubkey, mapping: Mapping[str, str | None] | None = None) -> str:
    """Reverse lookup; unmapped mints are labelled by their address."""
    source = mapping if mapping is not None else DEFAULT_TOKEN_MAPPING
    for label, value in source.items():
        if value is not None and value == str(mint):
            return label.lower()
    return str(mint)
