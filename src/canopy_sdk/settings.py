"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import tomllib

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

from .constants import (
    CACHE_TTL_SECONDS,
    DEFAULT_CHAIN_ID,
    DEFAULT_RPC_URL,
    GRAPHQL_ENDPOINT,
    MOVEPOSITION_API_URL,
    MOVEPOSITION_NAME_MAP,
    MOVEPOSITION_VIRTUAL_COIN_MAP,
    SENTIO_MULTI_REWARDS_ENDPOINT,
)

load_dotenv()

SECRET_FIELDS = {"sentio_api_key"}


class Network(str, Enum):
    MOVEMENT_MAINNET = "movement-mainnet"


class ModuleSettings(BaseModel):
    """Package addresses of the on-chain Move modules the SDK calls into."""

    router: str | None = None
    vault: str | None = None
    deposit_view: str | None = None
    withdraw_view: str | None = None
    multi_rewards: str | None = None
    multi_rewards_router: str | None = None

    model_config = ConfigDict(extra="ignore")

    def require(self, name: str) -> str:
        """Get a module address, raising ValueError if not configured."""
        value = getattr(self, name, None)
        if not value:
            raise ValueError(
                f"modules.{name} must be configured "
                f"(CANOPY_MODULES__{name.upper()} or [modules] in the config file)"
            )
        return value


class PlatformSettings(BaseModel):
    """One entry of a platform registry override."""

    name: str
    concrete_address: str
    requires_external_proof: bool = False
    coin_entry_point: bool = False

    model_config = ConfigDict(extra="ignore")


class CanopySettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI / constructor (init kwargs)
    - ENV / .env (prefixed with CANOPY_, nested keys separated by __)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- network ---
    network: Network = Network.MOVEMENT_MAINNET
    chain_id: int = DEFAULT_CHAIN_ID
    rpc_url: str = DEFAULT_RPC_URL
    modules: ModuleSettings = Field(default_factory=ModuleSettings)

    # --- metadata ---
    graphql_endpoint: str = GRAPHQL_ENDPOINT
    sentio_endpoint: str = SENTIO_MULTI_REWARDS_ENDPOINT
    sentio_api_key: SecretStr | None = None
    cache_ttl_seconds: float = Field(default=CACHE_TTL_SECONDS, ge=0)

    # --- MovePosition packets ---
    moveposition_api_url: str | None = MOVEPOSITION_API_URL
    moveposition_name_map: dict[str, str] = Field(
        default_factory=lambda: dict(MOVEPOSITION_NAME_MAP)
    )
    moveposition_virtual_coin_map: dict[str, str] = Field(
        default_factory=lambda: dict(MOVEPOSITION_VIRTUAL_COIN_MAP)
    )

    # --- platform registry (empty = built-in registry) ---
    platforms: list[PlatformSettings] = Field(default_factory=list)

    # --- timeouts and retries ---
    request_timeout: float = Field(default=15.0, gt=0)
    rpc_max_tries: int = Field(default=3, ge=1)
    build_timeout_seconds: float | None = None

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CANOPY_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("sentio_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr; treat empty strings as unset."""
        if v is None or isinstance(v, SecretStr):
            return v
        if v == "":
            return None
        return SecretStr(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("CANOPY_CONFIG")
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
                    local_config = Path("canopy.toml")
                    user_config = Path.home() / ".config" / "canopy" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [canopy]
                body = data.get("canopy", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def sentio_api_key_value(self) -> str | None:
        if self.sentio_api_key is None:
            return None
        return self.sentio_api_key.get_secret_value() or None

