"""Exceptions raised by the proposal pipeline.

Each pipeline stage raises its own error and leaves the session in its last
successful state, so the failed stage can be retried.
"""

from __future__ import annotations


class SafeProposerError(Exception):
    """Base class for all pipeline errors."""


class UnsupportedChain(SafeProposerError):
    """Raised when no chain profile is registered for a chain ID."""

    def __init__(self, chain_id: int, supported: list[int] | None = None):
        message = f"Unsupported chain_id: {chain_id}."
        if supported:
            message += f" Supported chains: {supported}"
        super().__init__(message)
        self.chain_id = chain_id


class GasLimitExceeded(SafeProposerError):
    """Raised when a raw gas estimate is above the chain's per-transaction ceiling."""

    def __init__(self, gas_estimate: int, max_gas_per_tx: int, index: int | None = None):
        if index is None:
            message = f"gasEstimate exceeds maxGasPerTx: {gas_estimate} > {max_gas_per_tx}"
        else:
            message = (
                f"gasEstimate for transaction #{index} exceeds maxGasPerTx: "
                f"{gas_estimate} > {max_gas_per_tx}"
            )
        super().__init__(message)
        self.gas_estimate = gas_estimate
        self.max_gas_per_tx = max_gas_per_tx
        self.index = index


class GasEstimationFailed(SafeProposerError):
    """Raised when the execution environment cannot simulate an intent."""

    def __init__(self, reason: str, index: int | None = None):
        prefix = "Gas estimation failed" if index is None else f"Gas estimation failed for transaction #{index}"
        super().__init__(f"{prefix}: {reason}")
        self.reason = reason
        self.index = index


class UninitializedWallet(SafeProposerError):
    """Raised when building a transaction before the wallet is initialized."""

    def __init__(self, message: str = "Safe is not initialized"):
        super().__init__(message)


class InvalidSessionState(SafeProposerError):
    """Raised when an orchestrator transition is called out of order."""

    def __init__(self, operation: str, required: str, current: str):
        super().__init__(
            f"Cannot call {operation}() in state '{current}': requires '{required}'"
        )
        self.operation = operation
        self.required = required
        self.current = current


class SigningUnavailable(SafeProposerError):
    """Raised when the signer identity holds no private key."""

    def __init__(self, address: str):
        super().__init__(f"Signer {address} is watch-only and cannot sign")
        self.address = address


class RelaySubmissionFailed(SafeProposerError):
    """Raised when the transaction service rejects or cannot receive a proposal.

    The signed transaction stays valid, so the caller may resubmit it.
    """

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(f"Failed to propose transaction: {reason}")
        self.reason = reason
        self.status_code = status_code


class SignatureMismatch(SafeProposerError):
    """Raised when a signature was made over a different transaction than the one proposed."""

    def __init__(self, signed_hash: str, transaction_hash: str):
        super().__init__(
            f"Signature is for safeTxHash {signed_hash}, "
            f"but the transaction hashes to {transaction_hash}"
        )
        self.signed_hash = signed_hash
        self.transaction_hash = transaction_hash
