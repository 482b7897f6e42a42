"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import ValidationError

from safe_proposer.settings import ProposerSettings


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the config source at an empty location and clear prefixed env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SAFE_PROPOSER_CONFIG", str(tmp_path / "missing.toml"))
    for key in (
        "SAFE_PROPOSER_RPC_URL",
        "SAFE_PROPOSER_SAFE_ADDRESS",
        "SAFE_PROPOSER_PRIVATE_KEY",
        "SAFE_PROPOSER_SIGNER_ADDRESS",
        "SAFE_PROPOSER_SAFE_TXN_SRVC_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    settings = ProposerSettings()

    assert settings.default_refund_fraction == 0.1
    assert settings.batch_refund_fraction == 0.1
    assert settings.request_timeout is None
    assert settings.chains == {}
    assert settings.log_level == "INFO"
    assert settings.api_key is None


def test_loads_toml_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [safe_proposer]
            rpc_url = "https://rpc.example"
            safe_address = "0x3234567890123456789012345678901234567890"
            batch_refund_fraction = 0.05
            log_level = "debug"

            [safe_proposer.chains.8453]
            relay_endpoint = "https://safe-transaction-base.safe.global"
            refund_fraction = 0.25
            max_gas_per_tx = 15000000
            """
        ).strip()
    )
    monkeypatch.setenv("SAFE_PROPOSER_CONFIG", str(config_path))

    settings = ProposerSettings()

    assert settings.rpc_url == "https://rpc.example"
    assert settings.safe_address_required == "0x3234567890123456789012345678901234567890"
    assert settings.batch_refund_fraction == 0.05
    assert settings.log_level == "DEBUG"
    chain = settings.chains[8453]
    assert chain.refund_fraction == 0.25
    assert chain.max_gas_per_tx == 15_000_000


def test_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('rpc_url = "https://file.example"\n')
    monkeypatch.setenv("SAFE_PROPOSER_CONFIG", str(config_path))
    monkeypatch.setenv("SAFE_PROPOSER_RPC_URL", "https://env.example")

    assert ProposerSettings().rpc_url == "https://env.example"
    assert ProposerSettings(rpc_url="https://init.example").rpc_url == "https://init.example"


def test_secrets_rejected_in_toml(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('private_key = "0xabc"\n')
    monkeypatch.setenv("SAFE_PROPOSER_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="Security violation"):
        ProposerSettings()


def test_secrets_from_env_are_redacted(monkeypatch):
    monkeypatch.setenv("SAFE_PROPOSER_PRIVATE_KEY", "0x" + "a" * 64)
    monkeypatch.setenv("SAFE_PROPOSER_SAFE_TXN_SRVC_API_KEY", "api-key")

    settings = ProposerSettings()

    assert settings.private_key_required == "0x" + "a" * 64
    assert settings.api_key == "api-key"
    dumped = settings.as_safe_dict()
    assert dumped["private_key"] == "***redacted***"
    assert dumped["safe_txn_srvc_api_key"] == "***redacted***"


@pytest.mark.parametrize(
    "field", ["default_refund_fraction", "batch_refund_fraction"]
)
@pytest.mark.parametrize("value", [1.0, 1.5, -0.1])
def test_refund_fractions_validated(field, value):
    with pytest.raises(ValidationError):
        ProposerSettings(**{field: value})


def test_chain_override_fraction_validated():
    with pytest.raises(ValidationError):
        ProposerSettings(chains={1: {"refund_fraction": 1, "max_gas_per_tx": 1}})


def test_required_properties_raise_when_missing():
    settings = ProposerSettings()

    with pytest.raises(ValueError, match="rpc_url must be configured"):
        settings.rpc_url_required
    with pytest.raises(ValueError, match="safe_address must be configured"):
        settings.safe_address_required
    with pytest.raises(ValueError, match="private_key must be configured"):
        settings.private_key_required
