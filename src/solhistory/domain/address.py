"""Account reference parsing backed by solders' Pubkey."""

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from solhistory.exceptions import InvalidAddressError


def parse_address(value: str | Pubkey) -> Pubkey:
    """Parse a base58 address into a 32-byte Pubkey. Raises InvalidAddressError."""
    if isinstance(value, Pubkey):
        return value
    if not isinstance(value, str) or not value:
        raise InvalidAddressError(f"Invalid address: {value!r}")
    try:
        return Pubkey.from_string(value)
    except (ValueError, TypeError) as e:
        raise InvalidAddressError(f"Invalid address: {value!r}") from e
