"""Refund-aware gas estimation for single transactions and batches."""

from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence
from fractions import Fraction

from .constants import BATCH_REFUND_FRACTION
from .domain import GasEstimate, TransactionIntent
from .errors import GasEstimationFailed, GasLimitExceeded
from .execution import ExecutionEnvironment
from .logger import get_logger

logger = get_logger(__name__)


def overestimate_gas_limit(gas_estimate: int, refund_fraction: float) -> int:
    """Inflate a gas estimate so the executor is still covered after the refund.

    The Safe refunds ``refund_fraction`` of the gas to whoever executes it, so
    the requested limit is ``G + G * f / (1 - f)``, rounded down.

    Args:
        gas_estimate: Raw gas units from simulation
        refund_fraction: Refund fraction in [0, 1)

    Returns:
        Overestimated gas limit, never below ``gas_estimate``

    Raises:
        ValueError: If ``refund_fraction`` is outside [0, 1)
    """
    if not 0 <= refund_fraction < 1:
        raise ValueError(f"refund_fraction must be in [0, 1), got {refund_fraction}")

    # Decimal string keeps 0.3 as exactly 3/10
    fraction = Fraction(str(refund_fraction))
    excess = gas_estimate * (fraction / (1 - fraction))
    return math.floor(gas_estimate + excess)


class GasEstimator:
    """Estimates gas for Safe intents against an execution environment."""

    def __init__(self, environment: ExecutionEnvironment):
        self.environment = environment

    async def _simulate(
        self, sender: str, intent: TransactionIntent, index: int | None = None
    ) -> int:
        try:
            return await asyncio.to_thread(
                self.environment.estimate_gas,
                sender,
                intent.to,
                intent.value,
                intent.data,
            )
        except Exception as e:
            raise GasEstimationFailed(str(e), index=index) from e

    async def estimate(
        self,
        sender: str,
        intent: TransactionIntent,
        refund_fraction: float,
        max_gas_per_tx: int | None = None,
    ) -> GasEstimate:
        """Estimate and overestimate gas for a single intent.

        Args:
            sender: Address the call is simulated from (the Safe)
            intent: The call to simulate
            refund_fraction: Chain refund fraction in [0, 1)
            max_gas_per_tx: Ceiling for the raw estimate; None disables the check

        Raises:
            GasLimitExceeded: If the raw estimate is above ``max_gas_per_tx``
            GasEstimationFailed: If the simulation fails
        """
        gas_estimate = await self._simulate(sender, intent)

        if max_gas_per_tx is not None and gas_estimate > max_gas_per_tx:
            raise GasLimitExceeded(gas_estimate, max_gas_per_tx)

        overestimated = overestimate_gas_limit(gas_estimate, refund_fraction)
        logger.debug(
            "gasEstimate: %d, overestimatedGas: %d (refund fraction %s)",
            gas_estimate,
            overestimated,
            refund_fraction,
        )
        return GasEstimate(raw_estimate=gas_estimate, overestimated=overestimated)

    async def estimate_batch(
        self,
        sender: str,
        intents: Sequence[TransactionIntent],
        max_gas_per_tx: int | None = None,
        refund_fraction: float = BATCH_REFUND_FRACTION,
    ) -> GasEstimate:
        """Estimate every intent of a batch and sum the results.

        Simulations run concurrently; ``per_intent`` keeps the input order.
        Any intent whose raw estimate is above ``max_gas_per_tx`` aborts the
        whole batch.

        Raises:
            GasLimitExceeded: Naming the index of the first offending intent
            GasEstimationFailed: If any simulation fails
        """
        if not intents:
            raise ValueError("Cannot estimate gas for an empty batch")

        gas_estimates = await asyncio.gather(
            *[self._simulate(sender, intent, index) for index, intent in enumerate(intents)]
        )

        per_intent: list[GasEstimate] = []
        for index, gas_estimate in enumerate(gas_estimates):
            logger.debug("gasEstimate for transaction #%d: %d", index, gas_estimate)

            if max_gas_per_tx is not None and gas_estimate > max_gas_per_tx:
                raise GasLimitExceeded(gas_estimate, max_gas_per_tx, index=index)

            overestimated = overestimate_gas_limit(gas_estimate, refund_fraction)
            logger.debug("overestimatedTotalGas for transaction #%d: %d", index, overestimated)
            per_intent.append(
                GasEstimate(raw_estimate=gas_estimate, overestimated=overestimated)
            )

        total = GasEstimate(
            raw_estimate=sum(e.raw_estimate for e in per_intent),
            overestimated=sum(e.overestimated for e in per_intent),
            per_intent=tuple(per_intent),
        )
        logger.info(
            "Estimated %d transaction(s): %d gas total (%d raw)",
            len(per_intent),
            total.overestimated,
            total.raw_estimate,
        )
        return total
