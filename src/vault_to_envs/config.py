"""Configuration models for secret requests and runs."""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from .exceptions import ConfigurationError, ConfigValidationError

ENV_VAR_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class SecretRequest(BaseModel):
    """One configured secret: where to read it and which keys to export."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    path: StrictStr = Field(alias="vault_path")
    ttl: StrictInt = 0
    version: StrictInt = 0
    mapping: Dict[StrictStr, StrictStr] = Field(alias="set")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("vault_path must not be empty")
        return v

    @field_validator("mapping")
    @classmethod
    def validate_mapping(cls, v: Dict[str, str]) -> Dict[str, str]:
        if not v:
            raise ValueError("at least one entry is required in 'set'")
        for name in v:
            if not ENV_VAR_NAME_PATTERN.fullmatch(name):
                raise ValueError(f"Invalid environment variable name '{name}'")
        return v


class ActivationConfig(BaseModel):
    """Backoff schedule for waiting on freshly issued cloud credentials."""

    max_attempts: int = Field(default=20, ge=1)
    initial_delay_seconds: float = Field(default=1.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)
    transient_error_codes: List[str] = Field(
        default_factory=lambda: ["InvalidClientTokenId"]
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    redaction: bool = True
    level: str = "INFO"


class RunConfig(BaseModel):
    """Settings for one command-line run."""

    vault_address: Optional[str] = None
    vault_token: Optional[str] = None
    vault_namespace: Optional[str] = None
    secret_config: Optional[str] = None
    secret_config_file: Optional[str] = None
    debug: bool = False
    activation: ActivationConfig = Field(default_factory=ActivationConfig)

    @classmethod
    def from_env(cls, **overrides: Any) -> "RunConfig":
        """Build settings from environment variables, then apply overrides.

        Overrides that are None fall back to the environment value.
        """
        values: Dict[str, Any] = {
            "vault_address": os.getenv("VAULT_ADDR"),
            "vault_token": os.getenv("VAULT_TOKEN"),
            "vault_namespace": os.getenv("VAULT_NAMESPACE"),
            "secret_config": os.getenv("SECRET_CONFIG"),
            "secret_config_file": os.getenv("SECRET_CONFIG_FILE"),
            "debug": _env_flag(os.getenv("DEBUG")),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate_sources(self) -> None:
        """Check required settings the way the command line reports them.

        Raises:
            ConfigurationError: If a required setting is missing or both
                config sources are set
        """
        if not self.vault_address:
            raise ConfigurationError(
                "--vault-address must be provided (or env var VAULT_ADDR)"
            )
        if not self.vault_token:
            raise ConfigurationError(
                "--vault-token must be provided (or env var VAULT_TOKEN)"
            )
        if not self.secret_config and not self.secret_config_file:
            raise ConfigurationError(
                "--secret-config or --secret-config-file must be provided "
                "(or env var SECRET_CONFIG or SECRET_CONFIG_FILE)"
            )
        if self.secret_config and self.secret_config_file:
            raise ConfigurationError(
                "Only one of --secret-config OR --secret-config-file can be set"
            )

    def logging_config(self) -> LoggingConfig:
        return LoggingConfig(level="DEBUG" if self.debug else "INFO")


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def parse_secret_requests(items: Any) -> List[SecretRequest]:
    """Validate a decoded config document into secret requests.

    Args:
        items: Decoded JSON/YAML document, expected to be a list of objects

    Returns:
        Secret requests in configured order

    Raises:
        ConfigValidationError: If the document or any item is invalid
    """
    if not isinstance(items, list):
        raise ConfigValidationError(
            "Secret config must be a list of secret definitions",
            details={"type": type(items).__name__},
        )

    requests: List[SecretRequest] = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ConfigValidationError(
                f"Secret config item {index} must be an object",
                details={"item": index},
            )
        try:
            requests.append(SecretRequest.model_validate(item))
        except ValidationError as e:
            raise ConfigValidationError(
                f"Invalid secret config item {index}: {_describe_validation_error(e)}",
                details={"item": index, "path": item.get("vault_path")},
            ) from e
    return requests


def _describe_validation_error(error: ValidationError) -> str:
    messages = []
    for err in error.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)


def load_secret_requests(
    secret_config: Optional[str] = None,
    secret_config_file: Optional[Union[str, Path]] = None,
) -> List[SecretRequest]:
    """Load secret requests from an inline JSON string or a config file.

    Files ending in .yaml/.yml are parsed as YAML, everything else as JSON.

    Args:
        secret_config: Inline JSON document
        secret_config_file: Path to a JSON or YAML document

    Returns:
        Secret requests in configured order

    Raises:
        ConfigurationError: If the file cannot be read or parsed
        ConfigValidationError: If the content is invalid
    """
    if secret_config_file:
        path = Path(secret_config_file)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                content = handle.read()
        except OSError as e:
            raise ConfigurationError(
                f"Error opening config file '{path}': {e}",
                details={"file": str(path)},
            ) from e
        if path.suffix.lower() in {".yaml", ".yml"}:
            try:
                document = yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Error parsing secret config file '{path}': {e}",
                    details={"file": str(path)},
                ) from e
            return parse_secret_requests(document if document is not None else [])
        return _parse_json(content, source=str(path))

    if secret_config:
        return _parse_json(secret_config, source="inline config")

    return []


def _parse_json(content: str, source: str) -> List[SecretRequest]:
    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Error parsing secret config ({source}): {e}",
            details={"source": source},
        ) from e
    return parse_secret_requests(document)

