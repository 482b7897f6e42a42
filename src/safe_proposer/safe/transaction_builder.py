"""Transaction builder for assembling and encoding Safe transactions."""

from __future__ import annotations

from collections.abc import Sequence

from safe_eth.safe.multi_send import MultiSendOperation, MultiSendTx
from web3 import Web3

from ..abi import load_multisend_abi, load_safe_abi
from ..domain import (
    GasEstimate,
    SafeOperation,
    TransactionIntent,
    UnsignedTransaction,
    WalletSession,
)
from ..errors import UninitializedWallet
from ..logger import get_logger
from .constants import MULTISEND_ADDRESS

logger = get_logger(__name__)


def encode_multi_send(
    intents: Sequence[TransactionIntent],
    multisend_address: str = MULTISEND_ADDRESS,
) -> tuple[str, bytes]:
    """Encode multiSend() transaction data for a batch of intents.

    Args:
        intents: Calls to bundle, executed in order
        multisend_address: MultiSend contract address

    Returns:
        Tuple of (to_address, encoded_calldata)

    Each intent is packed as
        uint8 operation | address to | uint256 value | uint256 dataLength | bytes data
    and the concatenation is passed as the single ``bytes`` argument.
    """
    w3 = Web3()
    checksum_address = w3.to_checksum_address(multisend_address)
    contract = w3.eth.contract(address=checksum_address, abi=load_multisend_abi())

    packed = b"".join(
        MultiSendTx(
            MultiSendOperation(int(intent.operation)),
            w3.to_checksum_address(intent.to),
            intent.value,
            intent.data,
        ).encoded_data
        for intent in intents
    )

    calldata_hex = contract.encode_abi(
        abi_element_identifier="multiSend",
        args=[packed],
    )

    return (checksum_address, bytes.fromhex(calldata_hex.removeprefix("0x")))


def encode_enable_module(safe_address: str, module: str) -> tuple[str, bytes]:
    """Encode enableModule() transaction data; the Safe calls itself."""
    w3 = Web3()
    checksum_address = w3.to_checksum_address(safe_address)
    contract = w3.eth.contract(address=checksum_address, abi=load_safe_abi())

    calldata_hex = contract.encode_abi(
        abi_element_identifier="enableModule",
        args=[w3.to_checksum_address(module)],
    )

    return (checksum_address, bytes.fromhex(calldata_hex.removeprefix("0x")))


def build_transaction(
    session: WalletSession | None,
    intents: TransactionIntent | Sequence[TransactionIntent],
    estimate: GasEstimate,
) -> UnsignedTransaction:
    """Assemble an unsigned Safe transaction.

    A single intent is executed directly; several intents are bundled into
    a MultiSend delegate call. ``estimate.overestimated`` is copied into
    ``safe_tx_gas`` unchanged.

    Raises:
        UninitializedWallet: If there is no initialized wallet session
        ValueError: If ``intents`` is empty
    """
    if session is None:
        raise UninitializedWallet()

    if isinstance(intents, TransactionIntent):
        intents = (intents,)
    intents = tuple(intents)
    if not intents:
        raise ValueError("At least one transaction intent is required")

    if len(intents) == 1:
        (intent,) = intents
        to, value, data, operation = intent.to, intent.value, intent.data, intent.operation
    else:
        profile = session.chain_profile
        multisend_address = profile.multisend_address if profile else MULTISEND_ADDRESS
        to, data = encode_multi_send(intents, multisend_address)
        value = 0
        operation = SafeOperation.DELEGATE_CALL

    logger.debug(
        "Built Safe transaction to %s (%d intent(s), safeTxGas %d)",
        to,
        len(intents),
        estimate.overestimated,
    )

    return UnsignedTransaction(
        wallet=Web3.to_checksum_address(session.wallet_address),
        intents=intents,
        safe_tx_gas=estimate.overestimated,
        to=Web3.to_checksum_address(to),
        value=value,
        data=data,
        operation=operation,
    )
