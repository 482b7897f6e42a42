"""Prepare, gas-estimate, sign and propose Safe multisig transactions."""

from .chains import DEFAULT_REGISTRY, ChainConfigRegistry, ChainProfile
from .domain import (
    GasEstimate,
    ProposalResult,
    ProposalStatus,
    SafeOperation,
    Signature,
    TransactionHash,
    TransactionIntent,
    UnsignedTransaction,
)
from .errors import (
    GasEstimationFailed,
    GasLimitExceeded,
    InvalidSessionState,
    RelaySubmissionFailed,
    SafeProposerError,
    SignatureMismatch,
    SigningUnavailable,
    UninitializedWallet,
    UnsupportedChain,
)
from .execution import ExecutionEnvironment, Web3ExecutionEnvironment
from .gas import GasEstimator, overestimate_gas_limit
from .logger import setup_logging
from .orchestrator import MultisigOrchestrator, SessionState
from .settings import ProposerSettings
from .signer import SignerSession, verify_signature

__all__ = [
    "DEFAULT_REGISTRY",
    "ChainConfigRegistry",
    "ChainProfile",
    "GasEstimate",
    "ProposalResult",
    "ProposalStatus",
    "SafeOperation",
    "Signature",
    "TransactionHash",
    "TransactionIntent",
    "UnsignedTransaction",
    "GasEstimationFailed",
    "GasLimitExceeded",
    "InvalidSessionState",
    "RelaySubmissionFailed",
    "SafeProposerError",
    "SignatureMismatch",
    "SigningUnavailable",
    "UninitializedWallet",
    "UnsupportedChain",
    "ExecutionEnvironment",
    "Web3ExecutionEnvironment",
    "GasEstimator",
    "overestimate_gas_limit",
    "setup_logging",
    "MultisigOrchestrator",
    "SessionState",
    "ProposerSettings",
    "SignerSession",
    "verify_signature",
]
