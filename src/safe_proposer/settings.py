"""Settings module with unified configuration precedence: INIT > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import BATCH_REFUND_FRACTION, DEFAULT_REFUND_FRACTION
from .safe.constants import MULTISEND_ADDRESS

load_dotenv()

SECRET_FIELDS = {"private_key", "safe_txn_srvc_api_key"}


class ChainSettings(BaseModel):
    """Per-chain override of the built-in chain profiles."""

    relay_endpoint: str | None = None
    refund_fraction: float = Field(ge=0, lt=1)
    max_gas_per_tx: int = Field(gt=0)
    multisend_address: str = MULTISEND_ADDRESS

    model_config = ConfigDict(extra="ignore")


class ProposerSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - init kwargs (highest)
    - ENV / .env (prefixed with SAFE_PROPOSER_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- endpoints / addresses ---
    rpc_url: str | None = None
    safe_address: str | None = None

    # --- signing / relay ---
    private_key: SecretStr | None = None
    signer_address: str | None = Field(
        default=None,
        description="Owner address for a watch-only signer when no private_key is set.",
    )
    safe_txn_srvc_api_key: SecretStr | None = None
    origin: str | None = None
    request_timeout: float | None = Field(default=None, gt=0)

    # --- gas ---
    default_refund_fraction: float = Field(
        default=DEFAULT_REFUND_FRACTION,
        ge=0,
        lt=1,
        description="Refund fraction for single transactions on chains without a profile.",
    )
    batch_refund_fraction: float = Field(
        default=BATCH_REFUND_FRACTION,
        ge=0,
        lt=1,
        description="Refund fraction applied to each call of a batch.",
    )

    # --- chains (usually from config file) ---
    chains: dict[int, ChainSettings] = Field(default_factory=dict)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SAFE_PROPOSER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", "safe_txn_srvc_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: INIT > ENV > FILE."""
        env_cfg = os.environ.get("SAFE_PROPOSER_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("safe-proposer.toml")
                    user_config = Path.home() / ".config" / "safe-proposer" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [safe_proposer]
                body = data.get("safe_proposer", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables."
                        )

                return body

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSource(settings_cls, cfg_path),
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump()
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, raising ValueError if not set."""
        if self.rpc_url is None:
            raise ValueError("rpc_url must be configured")
        return self.rpc_url

    @property
    def safe_address_required(self) -> str:
        """Get safe_address, raising ValueError if not set."""
        if self.safe_address is None:
            raise ValueError("safe_address must be configured")
        return self.safe_address

    @property
    def private_key_required(self) -> str:
        """Get the unwrapped private key, raising ValueError if not set."""
        if self.private_key is None:
            raise ValueError("private_key must be configured")
        return self.private_key.get_secret_value()

    @property
    def api_key(self) -> str | None:
        if self.safe_txn_srvc_api_key is None:
            return None
        return self.safe_txn_srvc_api_key.get_secret_value()
