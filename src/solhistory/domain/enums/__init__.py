from solhistory.domain.enums.network import SolanaNetwork

__all__ = [
    "SolanaNetwork",
]
