"""Execution environment: the RPC boundary used for simulation and nonce lookups."""

from __future__ import annotations

from typing import Protocol

from eth_typing import URI
from safe_eth.eth import EthereumClient
from web3 import Web3

from .abi import load_safe_abi
from .logger import TRACE, get_logger

logger = get_logger(__name__)


class ExecutionEnvironment(Protocol):
    """Anything that can simulate calls and read a Safe's nonce.

    Implementations may block; callers run them off the event loop.
    """

    def chain_id(self) -> int: ...

    def estimate_gas(self, sender: str, to: str, value: int, data: bytes) -> int: ...

    def get_nonce(self, wallet: str) -> int: ...


class Web3ExecutionEnvironment:
    """ExecutionEnvironment backed by a JSON-RPC node."""

    def __init__(self, ethereum_client: EthereumClient):
        self.ethereum_client = ethereum_client
        self.w3: Web3 = ethereum_client.w3
        self._chain_id: int | None = None

    @classmethod
    def from_rpc_url(cls, rpc_url: str) -> Web3ExecutionEnvironment:
        return cls(EthereumClient(URI(rpc_url)))

    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self.w3.eth.chain_id)
        return self._chain_id

    def estimate_gas(self, sender: str, to: str, value: int, data: bytes) -> int:
        transaction = {
            "from": Web3.to_checksum_address(sender),
            "to": Web3.to_checksum_address(to),
            "value": value,
            "data": "0x" + data.hex(),
        }
        gas = self.w3.eth.estimate_gas(transaction)  # type: ignore[arg-type]
        logger.log(TRACE, "eth_estimateGas %s -> %d", transaction, gas)
        return int(gas)

    def get_nonce(self, wallet: str) -> int:
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(wallet), abi=load_safe_abi()
        )
        return int(contract.functions.nonce().call())
