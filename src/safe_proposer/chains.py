"""Per-chain relay and gas configuration lookup."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from .constants import GAS_REFUND_FRACTION, MAX_GAS_PER_TRANSACTION
from .errors import UnsupportedChain
from .logger import get_logger
from .safe.constants import MULTISEND_ADDRESS, SAFE_SERVICE_URLS

if TYPE_CHECKING:
    from .settings import ProposerSettings

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChainProfile:
    """Relay endpoint and gas parameters for one chain.

    ``relay_endpoint`` is None on chains without a Safe Transaction Service;
    signatures for those chains have to be shared out-of-band.
    """

    chain_id: int
    refund_fraction: float
    max_gas_per_tx: int
    relay_endpoint: str | None = None
    multisend_address: str = MULTISEND_ADDRESS

    def __post_init__(self) -> None:
        if not 0 <= self.refund_fraction < 1:
            raise ValueError(
                f"refund_fraction for chain {self.chain_id} must be in [0, 1), "
                f"got {self.refund_fraction}"
            )
        if self.max_gas_per_tx <= 0:
            raise ValueError(
                f"max_gas_per_tx for chain {self.chain_id} must be positive, "
                f"got {self.max_gas_per_tx}"
            )

    @property
    def has_relay(self) -> bool:
        return self.relay_endpoint is not None


class ChainConfigRegistry:
    """Read-only mapping from chain ID to ChainProfile."""

    def __init__(self, profiles: Mapping[int, ChainProfile]):
        self._profiles = MappingProxyType(dict(profiles))

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def chain_ids(self) -> list[int]:
        return sorted(self._profiles)

    def resolve(self, chain_id: int) -> ChainProfile:
        """Get the profile registered for ``chain_id``.

        Raises:
            UnsupportedChain: If no profile is registered
        """
        try:
            return self._profiles[chain_id]
        except KeyError:
            raise UnsupportedChain(chain_id, self.chain_ids) from None

    def with_profiles(self, profiles: Mapping[int, ChainProfile]) -> ChainConfigRegistry:
        """Return a new registry with ``profiles`` added or replaced."""
        merged = dict(self._profiles)
        merged.update(profiles)
        return ChainConfigRegistry(merged)


DEFAULT_REGISTRY = ChainConfigRegistry(
    {
        int(chain_id): ChainProfile(
            chain_id=int(chain_id),
            refund_fraction=refund_fraction,
            max_gas_per_tx=MAX_GAS_PER_TRANSACTION[chain_id],
            relay_endpoint=SAFE_SERVICE_URLS.get(chain_id),
        )
        for chain_id, refund_fraction in GAS_REFUND_FRACTION.items()
    }
)


def build_registry(settings: ProposerSettings) -> ChainConfigRegistry:
    """Build the registry from the built-in profiles plus configured overrides."""
    if not settings.chains:
        return DEFAULT_REGISTRY

    overrides = {}
    for chain_id, chain in settings.chains.items():
        overrides[chain_id] = ChainProfile(
            chain_id=chain_id,
            refund_fraction=chain.refund_fraction,
            max_gas_per_tx=chain.max_gas_per_tx,
            relay_endpoint=chain.relay_endpoint,
            multisend_address=chain.multisend_address,
        )
        logger.debug("Registered chain profile override for chain %d", chain_id)

    return DEFAULT_REGISTRY.with_profiles(overrides)
