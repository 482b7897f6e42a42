"""Wallet session orchestration: estimate, build, sign and propose."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from enum import Enum

from web3 import Web3

from .chains import DEFAULT_REGISTRY, ChainConfigRegistry, build_registry
from .constants import BATCH_REFUND_FRACTION, DEFAULT_REFUND_FRACTION
from .domain import (
    GasEstimate,
    ProposalResult,
    ProposalStatus,
    Signature,
    TransactionIntent,
    UnsignedTransaction,
    WalletSession,
)
from .errors import (
    InvalidSessionState,
    SignatureMismatch,
    UninitializedWallet,
    UnsupportedChain,
)
from .execution import ExecutionEnvironment, Web3ExecutionEnvironment
from .gas import GasEstimator
from .logger import get_logger, setup_logging
from .safe.api_client import ProposalClient
from .safe.transaction_builder import build_transaction, encode_enable_module
from .settings import ProposerSettings
from .signer import SignerSession, hash_unsigned_transaction

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ESTIMATE_READY = "estimate_ready"
    BUILT = "built"
    SIGNED = "signed"
    PROPOSED = "proposed"


# States from which a new proposal cycle may start
_CYCLE_STATES = frozenset(SessionState) - {SessionState.UNINITIALIZED}


def _as_intents(
    intents: TransactionIntent | Sequence[TransactionIntent],
) -> tuple[TransactionIntent, ...]:
    if isinstance(intents, TransactionIntent):
        return (intents,)
    return tuple(intents)


class MultisigOrchestrator:
    """Drives one Safe wallet through estimate -> build -> sign -> propose.

    One transaction is in flight per instance. Calls on the same instance are
    not serialized; use one orchestrator per concurrent proposal.
    """

    def __init__(
        self,
        environment: ExecutionEnvironment,
        registry: ChainConfigRegistry = DEFAULT_REGISTRY,
        default_refund_fraction: float = DEFAULT_REFUND_FRACTION,
        batch_refund_fraction: float = BATCH_REFUND_FRACTION,
        api_key: str | None = None,
        request_timeout: float | None = None,
        origin: str | None = None,
    ):
        for name, fraction in (
            ("default_refund_fraction", default_refund_fraction),
            ("batch_refund_fraction", batch_refund_fraction),
        ):
            if not 0 <= fraction < 1:
                raise ValueError(f"{name} must be in [0, 1), got {fraction}")

        self.environment = environment
        self.registry = registry
        self.default_refund_fraction = default_refund_fraction
        self.batch_refund_fraction = batch_refund_fraction
        self._api_key = api_key
        self._request_timeout = request_timeout
        self._origin = origin

        self.gas_estimator = GasEstimator(environment)
        self.state = SessionState.UNINITIALIZED
        self.session: WalletSession | None = None
        self.signer: SignerSession | None = None
        self.proposal_client: ProposalClient | None = None
        self.estimate: GasEstimate | None = None
        # Used by initialize() when called without arguments
        self.default_signer: SignerSession | None = None
        self.default_wallet: str | None = None

    @classmethod
    def from_settings(cls, settings: ProposerSettings) -> MultisigOrchestrator:
        """Wire an orchestrator against the configured RPC and chain profiles.

        Also installs console logging at ``settings.log_level`` and sets the
        configured signer and Safe as defaults for ``initialize()``.
        """
        setup_logging(settings.log_level)
        environment = Web3ExecutionEnvironment.from_rpc_url(settings.rpc_url_required)
        orchestrator = cls(
            environment,
            registry=build_registry(settings),
            default_refund_fraction=settings.default_refund_fraction,
            batch_refund_fraction=settings.batch_refund_fraction,
            api_key=settings.api_key,
            request_timeout=settings.request_timeout,
            origin=settings.origin,
        )
        orchestrator.default_signer = SignerSession.from_settings(environment, settings)
        orchestrator.default_wallet = settings.safe_address
        return orchestrator

    def _require(self, operation: str, allowed: frozenset[SessionState] | SessionState) -> None:
        if isinstance(allowed, SessionState):
            allowed = frozenset({allowed})
        if self.state not in allowed:
            required = (
                SessionState.INITIALIZED.value
                if allowed == _CYCLE_STATES
                else " or ".join(sorted(s.value for s in allowed))
            )
            raise InvalidSessionState(operation, required, self.state.value)

    @property
    def session_required(self) -> WalletSession:
        if self.session is None:
            raise UninitializedWallet()
        return self.session

    def can_propose(self) -> bool:
        return self.session is not None and self.session.can_propose

    def close(self) -> None:
        """Release the transaction service HTTP session."""
        if self.proposal_client is not None:
            self.proposal_client.close()

    async def initialize(
        self,
        signer: SignerSession | None = None,
        wallet_address: str | None = None,
    ) -> WalletSession:
        """Bind the signer to a Safe and resolve the chain profile.

        Without arguments the defaults set by ``from_settings()`` are used.

        On an unsupported chain the session is still initialized (estimation
        and signing work, proposing does not) and UnsupportedChain is raised
        so the caller can decide whether that is acceptable.

        Raises:
            InvalidSessionState: If already initialized
            ValueError: If no signer or Safe address is given or configured
            UnsupportedChain: If the chain has no registered profile
        """
        self._require("initialize", SessionState.UNINITIALIZED)

        signer = signer or self.default_signer
        wallet_address = wallet_address or self.default_wallet
        if signer is None:
            raise ValueError("No signer given and none configured")
        if wallet_address is None:
            raise ValueError("safe_address must be configured")

        chain_id = await asyncio.to_thread(self.environment.chain_id)
        wallet = Web3.to_checksum_address(wallet_address)

        unsupported: UnsupportedChain | None = None
        try:
            profile = self.registry.resolve(chain_id)
        except UnsupportedChain as e:
            profile = None
            unsupported = e

        self.signer = signer
        self.session = WalletSession(
            wallet_address=wallet,
            chain_id=chain_id,
            signer_address=signer.address,
            chain_profile=profile,
        )
        self.proposal_client = ProposalClient(
            profile,
            api_key=self._api_key,
            request_timeout=self._request_timeout,
            origin=self._origin,
        )
        self.state = SessionState.INITIALIZED
        logger.info("Initialized Safe %s on chain %d as %s", wallet, chain_id, signer.address)

        if profile is not None and not profile.has_relay:
            logger.warning("Safe transaction service does not exist for chain %d", chain_id)

        if unsupported is not None:
            logger.warning("No chain profile for chain %d; proposals are disabled", chain_id)
            raise unsupported

        return self.session

    async def estimate_gas(
        self, intents: TransactionIntent | Sequence[TransactionIntent]
    ) -> GasEstimate:
        """Estimate gas for one intent, or for a batch when given several."""
        self._require("estimate_gas", _CYCLE_STATES)
        session = self.session_required
        profile = session.chain_profile
        max_gas_per_tx = profile.max_gas_per_tx if profile else None

        intents = _as_intents(intents)
        if len(intents) == 1:
            refund_fraction = (
                profile.refund_fraction if profile else self.default_refund_fraction
            )
            estimate = await self.gas_estimator.estimate(
                session.wallet_address, intents[0], refund_fraction, max_gas_per_tx
            )
        else:
            estimate = await self.gas_estimator.estimate_batch(
                session.wallet_address,
                intents,
                max_gas_per_tx,
                refund_fraction=self.batch_refund_fraction,
            )

        self.estimate = estimate
        self.state = SessionState.ESTIMATE_READY
        return estimate

    async def create_transaction(
        self, intents: TransactionIntent | Sequence[TransactionIntent]
    ) -> UnsignedTransaction:
        """Estimate gas and assemble the unsigned Safe transaction."""
        self._require("create_transaction", _CYCLE_STATES)
        intents = _as_intents(intents)
        estimate = await self.estimate_gas(intents)
        unsigned_tx = build_transaction(self.session, intents, estimate)
        self.state = SessionState.BUILT
        return unsigned_tx

    def create_enable_module_transaction(self, module: str) -> UnsignedTransaction:
        """Build a transaction enabling ``module`` on the Safe, without gas estimation."""
        self._require("create_enable_module_transaction", _CYCLE_STATES)
        session = self.session_required
        to, data = encode_enable_module(session.wallet_address, module)
        unsigned_tx = build_transaction(
            session,
            TransactionIntent(to=to, data=data),
            GasEstimate(raw_estimate=0, overestimated=0),
        )
        self.state = SessionState.BUILT
        return unsigned_tx

    async def sign_transaction(self, unsigned_tx: UnsignedTransaction) -> Signature:
        """Hash the transaction against the Safe's nonce and sign it.

        Raises:
            InvalidSessionState: Unless a transaction was just built
            SigningUnavailable: If the signer is watch-only
        """
        self._require("sign_transaction", SessionState.BUILT)
        assert self.signer is not None

        safe_tx_hash = await self.signer.hash(unsigned_tx)
        signature = self.signer.sign(safe_tx_hash)
        logger.info("Signed safeTxHash %s as %s", safe_tx_hash.to_hex(), signature.signer)

        self.state = SessionState.SIGNED
        return signature

    async def propose_transaction(
        self, unsigned_tx: UnsignedTransaction, signature: Signature
    ) -> ProposalResult:
        """Send the signed transaction to the chain's transaction service.

        Without a transaction service this succeeds with status
        NO_RELAY_CONFIGURED; the signature must then be shared out-of-band.

        Raises:
            InvalidSessionState: Unless the transaction was just signed
            SignatureMismatch: If ``signature`` was made over another transaction
            RelaySubmissionFailed: If the service rejects the proposal
        """
        self._require("propose_transaction", SessionState.SIGNED)
        assert self.proposal_client is not None

        signed_hash = signature.safe_tx_hash
        digest = hash_unsigned_transaction(unsigned_tx, signed_hash.chain_id, signed_hash.nonce)
        if digest != signed_hash.digest:
            raise SignatureMismatch(signed_hash.to_hex(), "0x" + digest.hex())

        result = await asyncio.to_thread(self.proposal_client.propose, unsigned_tx, signature)
        if result.status is ProposalStatus.NO_RELAY_CONFIGURED:
            logger.warning(
                "Cannot propose tx %s since there is no Safe transaction service for chain %d",
                result.safe_tx_hash,
                self.session_required.chain_id,
            )
        else:
            logger.info("Approve here: %s", result.ui_url)

        self.state = SessionState.PROPOSED
        return result
