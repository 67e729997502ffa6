from __future__ import annotations

from rich import print

from julesctl.config import CONFIG_ENV_OVERRIDES, get_config_path, get_env_overrides

from .common import read_config_or_exit, write_config_or_exit


def configure_cmd(*, api_key: str | None, base_url: str | None, timeout_s: int | None) -> None:
    """Store the API key and connection settings in the config file."""

    data = read_config_or_exit()
    if api_key is not None:
        data["api_key"] = api_key
    if base_url is not None:
        data["base_url"] = base_url
    if timeout_s is not None:
        data["timeout_s"] = timeout_s
    write_config_or_exit(data)


def config_show_cmd() -> None:
    """Print the effective configuration with the API key masked."""

    data = read_config_or_exit()
    overrides = get_env_overrides()
    print(f"config: {get_config_path()}")
    for key in CONFIG_ENV_OVERRIDES:
        value = overrides.get(key, data.get(key))
        source = "env" if key in overrides else "file"
        if value is None:
            print(f"{key}: (unset)")
            continue
        if key == "api_key":
            value = _mask(str(value))
        print(f"{key}: {value} ({source})")


def _mask(secret: str) -> str:
    if len(secret) <= 4:
        return "****"
    return f"{'*' * (len(secret) - 4)}{secret[-4:]}"
