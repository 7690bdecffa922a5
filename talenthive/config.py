"""Runtime configuration.

Settings are resolved from built-in defaults, then an optional YAML file,
then environment variables. The YAML file is validated against
``CONFIG_SCHEMA`` before use.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import jsonschema
import yaml

from .errors import ConfigError


DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

CONFIG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "data_dir": {"type": "string"},
        "jwt_secret": {"type": "string", "minLength": 16},
        "access_token_minutes": {"type": "integer", "minimum": 1},
        "refresh_token_days": {"type": "integer", "minimum": 1},
        "client_url": {"type": "string"},
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
        "stripe": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "secret_key": {"type": "string"},
                "webhook_secret": {"type": "string"},
            },
        },
        "server": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "host": {"type": "string"},
                "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                "debug": {"type": "boolean"},
            },
        },
        "platform": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "commission_rate": {"type": "number", "minimum": 0, "maximum": 100},
                "min_commission": {"type": "integer", "minimum": 0},
                "max_commission": {"type": "integer", "minimum": 0},
                "payment_processing_fee": {"type": "number", "minimum": 0, "maximum": 100},
                "tax_rate": {"type": "number", "minimum": 0, "maximum": 100},
                "currency": {"type": "string", "minLength": 3, "maxLength": 3},
                "withdrawal_min_amount": {"type": "integer", "minimum": 0},
                "withdrawal_fee": {"type": "integer", "minimum": 0},
                "escrow_hold_days": {"type": "integer", "minimum": 0},
                "registration_enabled": {"type": "boolean"},
            },
        },
    },
}


@dataclass
class Settings:
    """Resolved application settings."""

    data_dir: Path = DEFAULT_DATA_DIR
    jwt_secret: str = "change-me-in-production-please"
    access_token_minutes: int = 60
    refresh_token_days: int = 30
    client_url: str = "http://localhost:3000"
    log_level: str = "INFO"

    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None

    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False

    # Seeds PlatformSettings the first time the data directory is used
    platform_defaults: dict = field(default_factory=dict)


def _read_yaml(path: Path) -> dict:
    """Load and validate a YAML config file."""
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    try:
        jsonschema.validate(instance=raw, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"Invalid config {path} at {location}: {e.message}") from e

    return raw


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings(path: Optional[Path] = None, env: Optional[dict] = None) -> Settings:
    """Build settings from defaults, an optional YAML file and the environment."""
    env = os.environ if env is None else env
    settings = Settings()

    config_path = path or env.get("TALENTHIVE_CONFIG")
    if config_path:
        raw = _read_yaml(Path(config_path))

        if "data_dir" in raw:
            settings.data_dir = Path(raw["data_dir"])
        for key in ("jwt_secret", "access_token_minutes", "refresh_token_days", "client_url", "log_level"):
            if key in raw:
                setattr(settings, key, raw[key])

        stripe_cfg = raw.get("stripe", {})
        settings.stripe_secret_key = stripe_cfg.get("secret_key", settings.stripe_secret_key)
        settings.stripe_webhook_secret = stripe_cfg.get("webhook_secret", settings.stripe_webhook_secret)

        server_cfg = raw.get("server", {})
        settings.host = server_cfg.get("host", settings.host)
        settings.port = server_cfg.get("port", settings.port)
        settings.debug = server_cfg.get("debug", settings.debug)

        settings.platform_defaults = dict(raw.get("platform", {}))

    # Environment wins over the file
    if env.get("TALENTHIVE_DATA_DIR"):
        settings.data_dir = Path(env["TALENTHIVE_DATA_DIR"])
    if env.get("TALENTHIVE_JWT_SECRET"):
        settings.jwt_secret = env["TALENTHIVE_JWT_SECRET"]
    if env.get("TALENTHIVE_CLIENT_URL"):
        settings.client_url = env["TALENTHIVE_CLIENT_URL"]
    if env.get("STRIPE_SECRET_KEY"):
        settings.stripe_secret_key = env["STRIPE_SECRET_KEY"]
    if env.get("STRIPE_WEBHOOK_SECRET"):
        settings.stripe_webhook_secret = env["STRIPE_WEBHOOK_SECRET"]
    if env.get("LOG_LEVEL"):
        settings.log_level = env["LOG_LEVEL"].upper()
    if env.get("PORT"):
        settings.port = int(env["PORT"])
    if env.get("DEBUG"):
        settings.debug = _env_bool(env["DEBUG"])

    return settings
