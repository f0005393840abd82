from enum import Enum


class SolanaNetwork(str, Enum):
    """Solana clusters. Values match the public cluster names."""

    MAINNET_BETA = "mainnet-beta"
    DEVNET = "devnet"
    TESTNET = "testnet"
