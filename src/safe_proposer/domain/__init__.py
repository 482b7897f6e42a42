"""Domain models for Safe transaction proposals."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

from ..safe.constants import ZERO_ADDRESS

if TYPE_CHECKING:
    from ..chains import ChainProfile


class SafeOperation(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


@dataclass(frozen=True)
class TransactionIntent:
    """A call the Safe should make: destination, value and payload."""

    to: str
    value: int = 0
    data: bytes = b""
    operation: SafeOperation = SafeOperation.CALL

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"value must be non-negative, got {self.value}")


@dataclass(frozen=True)
class GasEstimate:
    """Raw and refund-inflated gas for one intent or a whole batch.

    For batches ``per_intent`` holds each intent's estimate in the order the
    intents were given, and both totals are sums over it.
    """

    raw_estimate: int
    overestimated: int
    per_intent: tuple[GasEstimate, ...] = ()

    @property
    def is_batch(self) -> bool:
        return bool(self.per_intent)


@dataclass(frozen=True)
class WalletSession:
    """Wallet, chain and signer bound together at initialization."""

    wallet_address: str
    chain_id: int
    signer_address: str
    chain_profile: ChainProfile | None = None

    @property
    def can_propose(self) -> bool:
        return self.chain_profile is not None and self.chain_profile.has_relay


@dataclass(frozen=True)
class UnsignedTransaction:
    """Safe transaction ready to be hashed and signed.

    ``to``/``value``/``data``/``operation`` are the call the Safe executes:
    the intent itself for a single intent, or a MultiSend delegate call for
    a batch.
    """

    wallet: str
    intents: tuple[TransactionIntent, ...]
    safe_tx_gas: int
    to: str
    value: int
    data: bytes
    operation: SafeOperation
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS


@dataclass(frozen=True)
class TransactionHash:
    """EIP-712 Safe transaction hash together with the state it was computed against."""

    digest: bytes
    wallet: str
    chain_id: int
    nonce: int

    def to_hex(self) -> str:
        return "0x" + self.digest.hex()


@dataclass(frozen=True)
class Signature:
    """An owner's ECDSA signature over exactly one TransactionHash."""

    signer: str
    signature_bytes: bytes
    safe_tx_hash: TransactionHash

    def to_hex(self) -> str:
        return "0x" + self.signature_bytes.hex()


class ProposalStatus(str, Enum):
    PROPOSED = "proposed"
    NO_RELAY_CONFIGURED = "no_relay_configured"


@dataclass(frozen=True)
class ProposalResult:
    status: ProposalStatus
    safe_tx_hash: str
    ui_url: str | None = None
    response: dict = field(default_factory=dict)

    @property
    def proposed(self) -> bool:
        return self.status is ProposalStatus.PROPOSED
