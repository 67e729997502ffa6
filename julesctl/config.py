from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("~/.config/julesctl/config.json").expanduser()
DEFAULT_BASE_URL = "https://jules.googleapis.com/v1alpha"

CONFIG_ENV_OVERRIDES = {
    "api_key": "JULES_API_KEY",
    "base_url": "JULESCTL_BASE_URL",
    "timeout_s": "JULESCTL_TIMEOUT_S",
    "log_level": "JULESCTL_LOG_LEVEL",
}


def get_config_path(path: Path | None = None) -> Path:
    if path is not None:
        return path.expanduser()
    override = os.getenv("JULESCTL_CONFIG", "").strip()
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def _load_object(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    raw = config_path.read_text(encoding="utf-8")
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid config json in {config_path}: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config must be an object: {config_path}")
    return data


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    return _load_object(get_config_path(path))


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    """Write settings as JSON; the file is owner-only before the API key lands in it."""

    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    # O_CREAT's mode does not apply to a file that already exists.
    config_path.chmod(0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    """Settings taken from the environment; blank variables count as unset."""

    return {
        key: os.environ[env_var].strip()
        for key, env_var in CONFIG_ENV_OVERRIDES.items()
        if os.environ.get(env_var, "").strip()
    }


@dataclass
class JulesConfig:
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout_s: int = 30
    log_level: str = "WARNING"

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigError(
                "missing API key: set JULES_API_KEY or run `julesctl configure --api-key ...`"
            )
        return self.api_key


def _parse_timeout(value: object, default: int) -> int:
    if value is None:
        return default
    try:
        timeout_s = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        timeout_s = 0
    if timeout_s <= 0:
        warnings.warn(
            f"Invalid timeout_s {value!r}, using {default}", RuntimeWarning, stacklevel=3
        )
        return default
    return timeout_s


def load_config(path: Path | None = None) -> JulesConfig:
    cfg = JulesConfig()
    try:
        cfg = _apply_dict(cfg, read_config_file(path))
    except ConfigError as exc:
        warnings.warn(f"Ignoring config file: {exc}", RuntimeWarning, stacklevel=2)
    return _apply_dict(cfg, get_env_overrides())


def _apply_dict(cfg: JulesConfig, data: dict[str, Any]) -> JulesConfig:
    for key, value in data.items():
        if key not in CONFIG_ENV_OVERRIDES or value is None:
            continue
        if key == "timeout_s":
            cfg.timeout_s = _parse_timeout(value, cfg.timeout_s)
        else:
            setattr(cfg, key, str(value))
    return cfg
