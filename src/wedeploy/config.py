"""
Configuration management for wedeploy.

Network settings are an explicit, immutable value passed to every component.
Both settings classes support environment variables and .env files.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# camelCase keys used by environment files shared with the JS deploy tooling
_ENVIRONMENT_FILE_KEYS = {
    "nodeAPI": "node_api",
    "nodeTimeout": "node_timeout",
    "chainID": "chain_id",
    "apiKey": "api_key",
    "transferFee": "transfer_fee",
    "invokeFee": "invoke_fee",
    "additionalFee": "additional_fee",
    "issueFee": "issue_fee",
    "setScriptFee": "set_script_fee",
    "setWasmScriptFee": "set_wasm_script_fee",
}


class NetworkConfig(BaseSettings):
    """
    Per-environment network settings.

    Loaded once at process start and read-only thereafter. All settings can
    be configured via environment variables with the WEDEPLOY_NETWORK_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="WEDEPLOY_NETWORK_",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    name: str = Field(description="Environment name (mainnet, testnet, ...)")
    node_api: str = Field(description="Base URL of the node REST API")
    node_timeout: int = Field(
        gt=0,
        description="Maximum time to wait for the node in milliseconds",
    )
    chain_id: int = Field(
        ge=0,
        le=255,
        description="Chain identifier byte",
    )
    api_key: str = Field(description="Node API key")

    # Fee schedule
    transfer_fee: int = Field(ge=0, description="Fee for transfer and data transactions")
    invoke_fee: int = Field(ge=0, description="Fee for contract calls")
    additional_fee: int = Field(ge=0, description="Extra fee for smart accounts/assets")
    issue_fee: int = Field(ge=0, description="Fee for asset issue")
    set_script_fee: int = Field(ge=0, description="Fee for set-script transactions")
    set_wasm_script_fee: int = Field(
        ge=0,
        description="Fee for WASM contract create/update transactions",
    )

    @field_validator("chain_id", mode="before")
    @classmethod
    def _chain_id_from_char(cls, value: Any) -> Any:
        """Accept the network byte as a single character, e.g. "T"."""
        if isinstance(value, str) and len(value) == 1 and not value.isdigit():
            return ord(value)
        return value

    @field_validator("node_api")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def node_timeout_seconds(self) -> float:
        """Node wait timeout in seconds."""
        return self.node_timeout / 1000


class AppSettings(BaseSettings):
    """
    Process-level settings for the command-line tool.

    All settings can be configured via environment variables with the
    WEDEPLOY_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="WEDEPLOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment selection
    environments_file: Optional[str] = Field(
        default=None,
        description="JSON file with per-environment network settings",
    )
    environment: Optional[str] = Field(
        default=None,
        description="Environment name to load from the environments file",
    )

    # Signing
    private_key: Optional[str] = Field(
        default=None,
        description="Base58 encoded ed25519 seed for the local signer",
    )

    # Tracking
    poll_backoff_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Delay between confirmation polling attempts",
    )
    max_poll_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional cap on polling attempts per tracking phase",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )


def network_config_from_dict(data: Dict[str, Any]) -> NetworkConfig:
    """
    Build a NetworkConfig from a mapping using either snake_case or the
    camelCase keys of shared environment files.
    """
    normalized = {_ENVIRONMENT_FILE_KEYS.get(key, key): value for key, value in data.items()}
    return NetworkConfig(**normalized)


def load_network_config(path: Union[str, Path], name: str) -> NetworkConfig:
    """
    Load the named environment from a JSON environments file.

    The file maps environment names to objects that either hold the network
    settings directly or under a "network" key:

        {"testnet": {"network": {"name": "testnet", "nodeAPI": "...", ...}}}

    Args:
        path: Path to the environments file
        name: Environment to load

    Returns:
        The environment's network configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the environment is not defined in the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Environments file not found: {path}")

    environments = json.loads(path.read_text(encoding="utf-8"))
    if name not in environments:
        raise ValueError(f"Unknown environment '{name}' in {path}")

    environment = environments[name]
    network = environment.get("network", environment)
    return network_config_from_dict(network)
