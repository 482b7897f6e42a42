"""Safe-related constants and network configurations."""

from ..constants import SupportedChainId

# Safe Transaction Service URLs by chain ID
SAFE_SERVICE_URLS: dict[int, str] = {
    SupportedChainId.ETHEREUM_MAINNET: "https://safe-transaction-mainnet.safe.global",
    SupportedChainId.ARBITRUM_MAINNET: "https://safe-transaction-arbitrum.safe.global",
    SupportedChainId.POLYGON_MAINNET: "https://safe-transaction-polygon.safe.global",
}

# Network names for UI URL generation
NETWORK_PREFIXES: dict[int, str] = {
    1: "eth",
    11155111: "sep",
    100: "gno",
    137: "matic",
    8453: "base",
    42161: "arb1",
    10: "oeth",
}

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# MultiSend v1.3.0, deployed at the same address on every supported chain
MULTISEND_ADDRESS = "0xA238CBeb142c10Ef7Ad8442C6D1f9E89e07e7761"

SAFE_TX_PATH = "/api/v1/safes/{safe_address}/multisig-transactions/"
