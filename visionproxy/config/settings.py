"""
Process-wide configuration.

Settings are read once at startup (optional YAML file, then a `.env` file,
then environment variables) into a frozen dataclass that is handed to whatever needs it.
Request handlers never read the environment themselves.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml
from dotenv import dotenv_values

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "VISION_PROXY_CONFIG"
DOTENV_PATH = ".env"


class ConfigError(ValueError): ...


@dataclass(frozen=True)
class Settings:
    azure_endpoint: Optional[str] = None
    azure_api_key: Optional[str] = None
    request_timeout_s: float = 30.0
    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1
    environment: str = "production"
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.azure_endpoint) and bool(self.azure_api_key)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


# YAML section/key -> Settings field
_YAML_KEYS = {
    ("azure", "endpoint"): "azure_endpoint",
    ("azure", "api_key"): "azure_api_key",
    ("azure", "timeout"): "request_timeout_s",
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("server", "workers"): "workers",
    ("server", "environment"): "environment",
    ("server", "cors_origins"): "cors_origins",
    ("logging", "level"): "log_level",
}

_ENV_KEYS = {
    "AZURE_ENDPOINT": "azure_endpoint",
    "AZURE_API_KEY": "azure_api_key",
    "REQUEST_TIMEOUT_S": "request_timeout_s",
    "HOST": "host",
    "PORT": "port",
    "WORKERS": "workers",
    "ENVIRONMENT": "environment",
    "CORS_ORIGINS": "cors_origins",
    "LOG_LEVEL": "log_level",
}


def _load_yaml(config_path: Union[Path, str]) -> Dict[str, Any]:
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")
    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config is not valid YAML: {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config must be a mapping: {path}")

    values: Dict[str, Any] = {}
    for (section, key), field_name in _YAML_KEYS.items():
        section_cfg = config.get(section) or {}
        if not isinstance(section_cfg, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        if section_cfg.get(key) is not None:
            values[field_name] = section_cfg[key]
    return values


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    coerced = dict(values)
    for name, cast in (("request_timeout_s", float), ("port", int), ("workers", int)):
        if name in coerced:
            try:
                coerced[name] = cast(coerced[name])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {name}: {coerced[name]!r}") from e

    origins = coerced.get("cors_origins")
    if isinstance(origins, str):
        coerced["cors_origins"] = tuple(o.strip() for o in origins.split(",") if o.strip())
    elif origins is not None:
        coerced["cors_origins"] = tuple(str(o) for o in origins)

    if "azure_endpoint" in coerced:
        coerced["azure_endpoint"] = str(coerced["azure_endpoint"]).rstrip("/")
    if "log_level" in coerced:
        coerced["log_level"] = str(coerced["log_level"]).upper()
    return coerced


def load_settings(
    config_path: Optional[Union[Path, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Union[Path, str]] = None,
) -> Settings:
    """
    Build Settings from an optional YAML file overlaid with environment variables.

    Variables from a `.env` file sit between the two; real environment
    variables win. Without an explicit `environ`, `./.env` is read if present.
    """
    if environ is None:
        environ = os.environ
        dotenv_path = dotenv_path or DOTENV_PATH
    if dotenv_path:
        file_values = {k: v for k, v in dotenv_values(dotenv_path).items() if v is not None}
        environ = {**file_values, **environ}

    path = config_path or environ.get(CONFIG_PATH_ENV)
    values = _load_yaml(path) if path else {}

    for env_key, field_name in _ENV_KEYS.items():
        if environ.get(env_key):
            values[field_name] = environ[env_key]

    settings = Settings(**_coerce(values))

    # Warning only; each request then fails with a 503 envelope.
    if not settings.has_credentials:
        logger.warning("Azure credentials not found. Set AZURE_ENDPOINT and AZURE_API_KEY in the environment or a .env file.")
    return settings
