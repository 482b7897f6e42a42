"""Chain IDs and per-chain gas constants."""

from enum import IntEnum


class SupportedChainId(IntEnum):
    ETHEREUM_MAINNET = 1
    ARBITRUM_MAINNET = 42161
    POLYGON_MAINNET = 137


# Fraction of gas the Safe refunds to the executor, per chain
GAS_REFUND_FRACTION: dict[int, float] = {
    SupportedChainId.ETHEREUM_MAINNET: 0.3,
    SupportedChainId.ARBITRUM_MAINNET: 0.3,
    SupportedChainId.POLYGON_MAINNET: 0.3,
}

MAX_GAS_PER_TRANSACTION: dict[int, int] = {
    SupportedChainId.ETHEREUM_MAINNET: 10_000_000,
    SupportedChainId.ARBITRUM_MAINNET: 10_000_000,
    SupportedChainId.POLYGON_MAINNET: 10_000_000,
}

# Used for the single-transaction path when the chain has no profile
DEFAULT_REFUND_FRACTION = 0.1

# Batches bundle many calls into one Safe transaction, so each call is
# inflated by a lower fraction to stay under the per-transaction ceiling
BATCH_REFUND_FRACTION = 0.1
