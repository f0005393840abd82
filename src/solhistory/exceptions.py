"""Error taxonomy for wallet history retrieval."""


class SolHistoryError(Exception):
    """Base class for all solhistory errors."""


class InvalidAddressError(SolHistoryError, ValueError):
    """Address string is not a valid 32-byte base58 public key."""


class UnsupportedTokenTypeError(SolHistoryError, ValueError):
    """Token label is neither the native label nor mapped to a mint."""


class InvalidEndpointError(SolHistoryError, ValueError):
    """RPC endpoint configuration or URL is unusable."""


class ExternalServiceError(SolHistoryError):
    """An RPC call failed."""


class RateLimitedError(ExternalServiceError):
    """RPC endpoint answered with a rate-limit signal (HTTP 429)."""


class RPCRequestError(ExternalServiceError):
    """Non rate-limit RPC failure. Never retried."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class RetriesExhaustedError(ExternalServiceError):
    """Every attempt of a retried call was rate limited."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class MalformedRecordError(SolHistoryError):
    """A transaction record could not be interpreted. Caught by the normalizer."""
