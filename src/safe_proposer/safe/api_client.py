"""Client for proposing transactions to the Safe Transaction Service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests
from web3 import Web3

from ..domain import ProposalResult, ProposalStatus, Signature, UnsignedTransaction
from ..errors import RelaySubmissionFailed
from ..logger import get_logger
from .constants import NETWORK_PREFIXES, SAFE_TX_PATH

if TYPE_CHECKING:
    from ..chains import ChainProfile

logger = get_logger(__name__)


def get_safe_ui_url(chain_id: int, safe_address: str, safe_tx_hash: str) -> str:
    """Generate Safe UI URL for a queued transaction.

    Args:
        chain_id: Network chain ID
        safe_address: Safe contract address
        safe_tx_hash: Safe transaction hash

    Returns:
        Safe web app URL for the transaction
    """
    network_prefix = NETWORK_PREFIXES.get(chain_id, "eth")
    return (
        f"https://app.safe.global/transactions/queue"
        f"?safe={network_prefix}:{Web3.to_checksum_address(safe_address)}"
        f"#{safe_tx_hash}"
    )


def build_proposal_payload(
    unsigned_tx: UnsignedTransaction,
    signature: Signature,
    origin: str | None = None,
) -> dict[str, Any]:
    """Render a signed transaction as a multisig-transactions request body."""
    safe_tx_hash = signature.safe_tx_hash
    payload: dict[str, Any] = {
        "to": Web3.to_checksum_address(unsigned_tx.to),
        "value": str(unsigned_tx.value),
        "data": "0x" + unsigned_tx.data.hex() if unsigned_tx.data else None,
        "operation": int(unsigned_tx.operation),
        "safeTxGas": str(unsigned_tx.safe_tx_gas),
        "baseGas": str(unsigned_tx.base_gas),
        "gasPrice": str(unsigned_tx.gas_price),
        "gasToken": Web3.to_checksum_address(unsigned_tx.gas_token),
        "refundReceiver": Web3.to_checksum_address(unsigned_tx.refund_receiver),
        "nonce": safe_tx_hash.nonce,
        "contractTransactionHash": safe_tx_hash.to_hex(),
        "sender": Web3.to_checksum_address(signature.signer),
        "signature": signature.to_hex(),
    }

    if origin:
        payload["origin"] = origin

    return payload


class ProposalClient:
    """Submits signed Safe transactions to a chain's transaction service.

    No retries are attempted; a failed proposal can be resubmitted with the
    same signature.
    """

    def __init__(
        self,
        profile: ChainProfile | None,
        api_key: str | None = None,
        request_timeout: float | None = None,
        origin: str | None = None,
        session: requests.Session | None = None,
    ):
        self.profile = profile
        self.request_timeout = request_timeout
        self.origin = origin
        self._owns_session = session is None
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self.session.close()

    @property
    def service_url(self) -> str | None:
        if self.profile is None:
            return None
        return self.profile.relay_endpoint

    def propose(self, unsigned_tx: UnsignedTransaction, signature: Signature) -> ProposalResult:
        """Propose a signed transaction to the Safe Transaction Service.

        Returns:
            ProposalResult with status PROPOSED, or NO_RELAY_CONFIGURED without
            any network I/O when the chain has no transaction service

        Raises:
            RelaySubmissionFailed: On network errors or non-2xx responses
        """
        safe_tx_hash = signature.safe_tx_hash.to_hex()

        service_url = self.service_url
        if service_url is None:
            return ProposalResult(
                status=ProposalStatus.NO_RELAY_CONFIGURED, safe_tx_hash=safe_tx_hash
            )

        safe_address = Web3.to_checksum_address(unsigned_tx.wallet)
        payload = build_proposal_payload(unsigned_tx, signature, self.origin)
        url = service_url.rstrip("/") + SAFE_TX_PATH.format(safe_address=safe_address)

        try:
            response = self.session.post(url, json=payload, timeout=self.request_timeout)
        except requests.RequestException as e:
            logger.error("Failed to reach Safe Transaction Service: %s", e)
            raise RelaySubmissionFailed(str(e)) from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error("Failed to propose transaction: %s - %s", e, response.text)
            raise RelaySubmissionFailed(
                f"{response.status_code} {response.text}".strip(),
                status_code=response.status_code,
            ) from e

        # 201 Created has an empty body
        body: dict[str, Any] = {}
        if response.status_code != 201 and response.content:
            try:
                body = response.json()
            except ValueError:
                logger.warning(
                    "Proposal accepted with a non-JSON response body (status %d)",
                    response.status_code,
                )

        logger.info("Transaction proposed successfully: %s", safe_tx_hash)
        return ProposalResult(
            status=ProposalStatus.PROPOSED,
            safe_tx_hash=safe_tx_hash,
            ui_url=get_safe_ui_url(signature.safe_tx_hash.chain_id, safe_address, safe_tx_hash),
            response=body,
        )
