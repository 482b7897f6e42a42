from __future__ import annotations

from collections.abc import Callable

import pytest

from safe_proposer.signer import SignerSession


class FakeExecutionEnvironment:
    """In-memory execution environment keyed by call destination."""

    def __init__(
        self,
        gas: dict[str, int | Exception] | None = None,
        default_gas: int = 21_000,
        chain_id: int = 1,
        nonce: int = 0,
    ):
        self.gas = {to.lower(): units for to, units in (gas or {}).items()}
        self.default_gas = default_gas
        self._chain_id = chain_id
        self.nonce = nonce
        self.estimate_calls: list[tuple[str, str, int, bytes]] = []
        self.nonce_calls: list[str] = []

    def chain_id(self) -> int:
        return self._chain_id

    def estimate_gas(self, sender: str, to: str, value: int, data: bytes) -> int:
        self.estimate_calls.append((sender, to, value, data))
        units = self.gas.get(to.lower(), self.default_gas)
        if isinstance(units, Exception):
            raise units
        return units

    def get_nonce(self, wallet: str) -> int:
        self.nonce_calls.append(wallet)
        return self.nonce


@pytest.fixture
def safe_address() -> str:
    return "0x3234567890123456789012345678901234567890"


@pytest.fixture
def owner_key() -> str:
    return "0x" + "a" * 64


@pytest.fixture
def make_environment() -> Callable[..., FakeExecutionEnvironment]:
    return FakeExecutionEnvironment


@pytest.fixture
def environment() -> FakeExecutionEnvironment:
    return FakeExecutionEnvironment()


@pytest.fixture
def signer(environment, owner_key) -> SignerSession:
    return SignerSession.from_private_key(environment, owner_key)
