"""Safe transaction hashing and owner signatures."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak
from web3 import Web3

from .domain import Signature, TransactionHash, UnsignedTransaction
from .errors import SigningUnavailable
from .execution import ExecutionEnvironment
from .logger import get_logger

if TYPE_CHECKING:
    from .settings import ProposerSettings

logger = get_logger(__name__)

# EIP-712 typehashes from Safe.sol (v1.3.0+)
DOMAIN_SEPARATOR_TYPEHASH = keccak(
    b"EIP712Domain(uint256 chainId,address verifyingContract)"
)
SAFE_TX_TYPEHASH = keccak(
    b"SafeTx(address to,uint256 value,bytes data,uint8 operation,uint256 safeTxGas,uint256 baseGas,uint256 gasPrice,address gasToken,address refundReceiver,uint256 nonce)"
)


def _address_word(address: str) -> bytes:
    return bytes.fromhex(Web3.to_checksum_address(address)[2:]).rjust(32, b"\x00")


def _uint_word(value: int) -> bytes:
    return int(value).to_bytes(32, "big")


def calculate_safe_tx_hash(
    chain_id: int,
    safe_address: str,
    to: str,
    value: int,
    data: bytes,
    operation: int,
    safe_tx_gas: int,
    base_gas: int,
    gas_price: int,
    gas_token: str,
    refund_receiver: str,
    nonce: int,
) -> bytes:
    """EIP-712 digest a Safe owner signs, the ``contractTransactionHash``.

    Matches ``getTransactionHash`` on the Safe contract for the given chain
    and nonce; any change to a field or to the nonce changes the digest.
    """
    domain_separator = keccak(
        DOMAIN_SEPARATOR_TYPEHASH + _uint_word(chain_id) + _address_word(safe_address)
    )
    struct_hash = keccak(
        b"".join(
            [
                SAFE_TX_TYPEHASH,
                _address_word(to),
                _uint_word(value),
                keccak(data),
                _uint_word(operation),
                _uint_word(safe_tx_gas),
                _uint_word(base_gas),
                _uint_word(gas_price),
                _address_word(gas_token),
                _address_word(refund_receiver),
                _uint_word(nonce),
            ]
        )
    )
    return keccak(b"\x19\x01" + domain_separator + struct_hash)


def hash_unsigned_transaction(
    unsigned_tx: UnsignedTransaction, chain_id: int, nonce: int
) -> bytes:
    """Digest of ``unsigned_tx`` for its Safe at ``nonce`` on ``chain_id``."""
    return calculate_safe_tx_hash(
        chain_id=chain_id,
        safe_address=unsigned_tx.wallet,
        to=unsigned_tx.to,
        value=unsigned_tx.value,
        data=unsigned_tx.data,
        operation=unsigned_tx.operation,
        safe_tx_gas=unsigned_tx.safe_tx_gas,
        base_gas=unsigned_tx.base_gas,
        gas_price=unsigned_tx.gas_price,
        gas_token=unsigned_tx.gas_token,
        refund_receiver=unsigned_tx.refund_receiver,
        nonce=nonce,
    )


def recover_signer(signature_bytes: bytes, digest: bytes) -> str:
    """Recover the checksum address that produced a 65-byte r|s|v signature."""
    if len(signature_bytes) != 65:
        raise ValueError(f"Expected a 65-byte signature, got {len(signature_bytes)}")
    v = signature_bytes[64]
    if v >= 27:
        v -= 27
    signature = keys.Signature(signature_bytes=signature_bytes[:64] + bytes([v]))
    public_key = signature.recover_public_key_from_msg_hash(digest)
    return public_key.to_checksum_address()


def verify_signature(signature: Signature, safe_tx_hash: TransactionHash) -> bool:
    """Check that ``signature`` was made by its signer over ``safe_tx_hash``."""
    try:
        recovered = recover_signer(signature.signature_bytes, safe_tx_hash.digest)
    except (BadSignature, ValidationError, ValueError):
        return False
    return recovered == Web3.to_checksum_address(signature.signer)


class SignerSession:
    """An owner identity that hashes and signs Safe transactions.

    A session created with only an address is watch-only: it can hash
    transactions but ``sign`` raises SigningUnavailable.
    """

    def __init__(
        self,
        environment: ExecutionEnvironment,
        address: str,
        account: LocalAccount | None = None,
    ):
        self.environment = environment
        self.address = Web3.to_checksum_address(address)
        self._account = account
        if account is not None and account.address != self.address:
            raise ValueError(
                f"Account {account.address} does not match signer address {self.address}"
            )

    @classmethod
    def from_private_key(
        cls, environment: ExecutionEnvironment, private_key: str
    ) -> SignerSession:
        account: LocalAccount = Account.from_key(private_key)
        return cls(environment, account.address, account)

    @classmethod
    def watch_only(cls, environment: ExecutionEnvironment, address: str) -> SignerSession:
        return cls(environment, address)

    @classmethod
    def from_settings(
        cls, environment: ExecutionEnvironment, settings: ProposerSettings
    ) -> SignerSession | None:
        """Signer from the configured private key, else a watch-only signer_address.

        Returns None when neither is configured.
        """
        if settings.private_key is not None:
            return cls.from_private_key(environment, settings.private_key_required)
        if settings.signer_address is not None:
            return cls.watch_only(environment, settings.signer_address)
        return None

    @property
    def can_sign(self) -> bool:
        return self._account is not None

    async def hash(self, unsigned_tx: UnsignedTransaction) -> TransactionHash:
        """Compute the Safe tx hash against the wallet's current nonce and chain."""
        nonce = await asyncio.to_thread(self.environment.get_nonce, unsigned_tx.wallet)
        chain_id = await asyncio.to_thread(self.environment.chain_id)

        digest = hash_unsigned_transaction(unsigned_tx, chain_id, nonce)
        safe_tx_hash = TransactionHash(
            digest=digest, wallet=unsigned_tx.wallet, chain_id=chain_id, nonce=nonce
        )
        logger.debug("safeTxHash: %s (nonce %d)", safe_tx_hash.to_hex(), nonce)
        return safe_tx_hash

    def sign(self, safe_tx_hash: TransactionHash) -> Signature:
        """Sign the raw Safe tx hash (no EIP-191 prefix), as Safe owners do.

        Raises:
            SigningUnavailable: If this session is watch-only
        """
        if self._account is None:
            raise SigningUnavailable(self.address)

        signed = self._account.unsafe_sign_hash(safe_tx_hash.digest)
        signature_bytes = (
            signed.r.to_bytes(32, "big") + signed.s.to_bytes(32, "big") + bytes([signed.v])
        )
        return Signature(
            signer=self.address,
            signature_bytes=signature_bytes,
            safe_tx_hash=safe_tx_hash,
        )
