from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from insights_webui.errors import ConfigError

CONFIG_FILE_ENV = "INSIGHTS_WEB_UI_CONFIG_FILE"
DEFAULT_CONFIG_NAMES = ("config.toml", "config.json")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class BackendConfig(_Frozen):
    controller_url: str = Field(
        description="Base URL of the controller service, e.g. http://localhost:8080"
    )
    timeout_seconds: float | None = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single call to the controller; null disables it.",
    )

    @property
    def base_url(self) -> str:
        return self.controller_url.rstrip("/")


class ServerConfig(_Frozen):
    address: str = Field(description="Listen address in host:port form, e.g. :8081")


class UIConfig(_Frozen):
    html_dir: str | None = Field(
        default=None,
        description=(
            "Optional directory holding page templates and static files. If omitted, "
            "the pages bundled with the package are used."
        ),
    )


class LoggingConfig(_Frozen):
    level: str = Field(default="INFO")
    file: str | None = Field(default=None, description="Optional log file path.")
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


class WebUIConfig(_Frozen):
    backend: BackendConfig
    server: ServerConfig
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_layout(cls, data: Any) -> Any:
        # Older deployments use a flat file with just controller_url and address.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "controller_url" in data:
            backend = dict(data.get("backend") or {})
            backend.setdefault("controller_url", data.pop("controller_url"))
            data["backend"] = backend
        if "address" in data:
            server = dict(data.get("server") or {})
            server.setdefault("address", data.pop("address"))
            data["server"] = server
        return data


def resolve_config_path(
    environ: dict[str, str] | None = None, cwd: Path | None = None
) -> Path:
    """Find the configuration file.

    INSIGHTS_WEB_UI_CONFIG_FILE wins when set; otherwise config.toml, then
    config.json, in the working directory.
    """

    env = os.environ if environ is None else environ
    raw = (env.get(CONFIG_FILE_ENV) or "").strip()
    if raw:
        return Path(raw).expanduser()

    base = Path.cwd() if cwd is None else cwd
    for name in DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    return base / DEFAULT_CONFIG_NAMES[0]


def _read_raw(path: Path) -> dict[str, Any]:
    try:
        if path.suffix == ".json":
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        else:
            with path.open("rb") as f:
                raw = tomllib.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid config format at {path}")
    return raw


def load_webui_config(path: Path | None = None) -> WebUIConfig:
    """Load and validate the configuration file.

    Any failure (missing file, bad syntax, failed validation) is a ConfigError.
    """

    config_path = resolve_config_path() if path is None else path
    raw = _read_raw(config_path)
    try:
        return WebUIConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc


def parse_address(address: str) -> tuple[str, int]:
    """Split a host:port listen address. An empty host binds all interfaces."""

    host, sep, port_raw = address.strip().rpartition(":")
    if not sep:
        raise ConfigError(f"Listen address must be host:port, got {address!r}")
    try:
        port = int(port_raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid port in listen address {address!r}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range in listen address {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port
