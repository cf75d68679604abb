"""Bridge configuration: JSON settings file overlaid with environment variables."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "appsettings.json"

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_SYSTEM_INSTRUCTION = (
    "Como um bom amigo na faixa dos 30 anos de idade, responda as perguntas e "
    "faça comentários sobre afirmações de maneira informal e com frases curtas "
    "como respostas de um bate papo no whatsapp."
)
DEFAULT_GRAPH_URL = "https://graph.facebook.com"
DEFAULT_GRAPH_API_VERSION = "v22.0"
DEFAULT_HTTP_TIMEOUT = 10.0

# attribute -> (file section, file key, environment variables; first set one wins)
_CREDENTIAL_SOURCES: dict[str, tuple[str, str, tuple[str, ...]]] = {
    "verify_token": ("Whatsapp", "VERIFY_TOKEN", ("Whatsapp__VERIFY_TOKEN", "VERIFY_TOKEN")),
    "access_token": ("Whatsapp", "ACCESS_TOKEN", ("Whatsapp__ACCESS_TOKEN", "ACCESS_TOKEN")),
    "api_key": ("Gemini", "API_KEY", ("Gemini__API_KEY", "API_KEY")),
}


class ConfigError(Exception):
    """Raised when the configuration source itself is unusable."""


@dataclass(frozen=True)
class BridgeConfig:
    """Read-only settings shared by every request."""

    verify_token: str = field(default="", repr=False)
    access_token: str = field(default="", repr=False)
    api_key: str = field(default="", repr=False)
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    graph_url: str = DEFAULT_GRAPH_URL
    graph_api_version: str = DEFAULT_GRAPH_API_VERSION
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def missing_credentials(self) -> list[str]:
        """Names of the credentials that are absent or empty."""
        return [
            f"{section}.{key}"
            for attr, (section, key, _) in _CREDENTIAL_SOURCES.items()
            if not getattr(self, attr)
        ]

    @property
    def outbound_configured(self) -> bool:
        """True when both outbound channels (WhatsApp send, Gemini) have credentials."""
        return bool(self.access_token) and bool(self.api_key)


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _section_value(data: Mapping[str, Any], section: str, key: str) -> str:
    block = data.get(section)
    if not isinstance(block, dict):
        return ""
    value = block.get(key)
    return str(value) if value is not None else ""


def load_config(
    config_path: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> BridgeConfig:
    """Build a BridgeConfig from an optional JSON file and the environment.

    An explicitly requested file (argument or ``BRIDGE_CONFIG_PATH``) must
    exist; the default ``appsettings.json`` is only read when present.
    Environment variables take precedence over file values.
    """
    env = os.environ if environ is None else environ

    explicit = config_path or env.get("BRIDGE_CONFIG_PATH")
    file_data: dict[str, Any] = {}
    if explicit:
        file_data = _read_config_file(Path(explicit))
    elif Path(DEFAULT_CONFIG_PATH).is_file():
        file_data = _read_config_file(Path(DEFAULT_CONFIG_PATH))

    credentials: dict[str, str] = {}
    for attr, (section, key, env_names) in _CREDENTIAL_SOURCES.items():
        value = next((env[name] for name in env_names if env.get(name)), "")
        credentials[attr] = value or _section_value(file_data, section, key)

    raw_timeout = env.get("BRIDGE_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))
    try:
        http_timeout = float(raw_timeout)
    except ValueError as exc:
        raise ConfigError(f"BRIDGE_HTTP_TIMEOUT must be a number, got {raw_timeout!r}") from exc
    if http_timeout <= 0:
        raise ConfigError("BRIDGE_HTTP_TIMEOUT must be positive")

    config = BridgeConfig(
        **credentials,
        gemini_base_url=env.get("GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
        gemini_model=env.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        system_instruction=env.get("GEMINI_SYSTEM_INSTRUCTION", DEFAULT_SYSTEM_INSTRUCTION),
        graph_url=env.get("WHATSAPP_GRAPH_URL", DEFAULT_GRAPH_URL),
        graph_api_version=env.get("WHATSAPP_API_VERSION", DEFAULT_GRAPH_API_VERSION),
        http_timeout=http_timeout,
    )
    missing = config.missing_credentials()
    if missing:
        logger.warning("Missing credentials: %s", ", ".join(missing))
    return config
