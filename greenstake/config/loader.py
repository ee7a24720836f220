"""
Configuration management and loading.

Handles application settings from an optional YAML file and environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

DEFAULT_INFERENCE_URL = "https://router.huggingface.co/v1"
DEFAULT_MODEL = "gpt2"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Environment variable -> settings field
ENV_OVERRIDES = {
    "HF_TOKEN": "hf_token",
    "GREENSTAKE_INFERENCE_URL": "inference_base_url",
    "GREENSTAKE_MODEL": "inference_model",
    "GREENSTAKE_MIN_STAKE": "min_stake",
    "GREENSTAKE_CORS_ORIGINS": "cors_origins",
    "GREENSTAKE_LOG_LEVEL": "log_level",
    "GREENSTAKE_HOST": "host",
    "GREENSTAKE_PORT": "port",
}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API server and forecaster."""
    hf_token: Optional[str] = None
    inference_base_url: str = DEFAULT_INFERENCE_URL
    inference_model: str = DEFAULT_MODEL
    max_new_tokens: int = 10
    temperature: float = 0.7
    min_stake: Decimal = Decimal("0.01")
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 5000

    def __post_init__(self):
        """Validate setting values."""
        if not self.inference_base_url:
            raise ValueError("inference_base_url cannot be empty")
        if not self.inference_model:
            raise ValueError("inference_model cannot be empty")
        if self.max_new_tokens <= 0:
            raise ValueError("max_new_tokens must be > 0")
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")
        if self.min_stake < 0:
            raise ValueError("min_stake must be >= 0")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {sorted(VALID_LOG_LEVELS)}")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")

    @property
    def ai_configured(self) -> bool:
        """Whether an inference credential is present."""
        return bool(self.hf_token)


def load_settings(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load and validate settings.

    Values come from defaults, then the YAML file when given, then the
    environment. Unknown YAML keys are rejected so that typos do not pass
    silently.

    Args:
        path: Optional path to a YAML settings file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated Settings object

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If a setting is invalid
    """
    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}

    if path is not None:
        raw.update(_read_yaml(path))

    for env_name, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is not None and value != "":
            raw[field_name] = value

    return replace(Settings(), **_coerce(raw))


def _read_yaml(path: str) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in settings file {path}: {e}")

    if not data:
        raise ValueError("Settings file is empty")
    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a mapping")

    allowed_keys = set(Settings.__dataclass_fields__)
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown settings keys: {unknown_keys}")
    return data


def _coerce(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Convert raw YAML/env values to the types Settings expects."""
    values: Dict[str, Any] = {}
    for name, value in raw.items():
        if name in ("max_new_tokens", "port"):
            values[name] = _as_int(name, value)
        elif name == "temperature":
            if isinstance(value, bool):
                raise ValueError("'temperature' must be a number")
            try:
                values[name] = float(value)
            except (TypeError, ValueError):
                raise ValueError("'temperature' must be a number")
        elif name == "min_stake":
            try:
                values[name] = Decimal(str(value))
            except InvalidOperation:
                raise ValueError("'min_stake' must be a decimal number")
        elif name == "cors_origins":
            if isinstance(value, str):
                origins = [o.strip() for o in value.split(",") if o.strip()]
            elif isinstance(value, list):
                origins = [str(o) for o in value]
            else:
                raise ValueError("'cors_origins' must be a list or comma separated string")
            if not origins:
                raise ValueError("'cors_origins' cannot be empty")
            values[name] = tuple(origins)
        elif name == "log_level":
            values[name] = str(value).upper()
        elif name == "hf_token":
            values[name] = None if value is None else str(value)
        else:
            if not isinstance(value, str):
                raise ValueError(f"'{name}' must be a string")
            values[name] = value
    return values


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{name}' must be an integer")
