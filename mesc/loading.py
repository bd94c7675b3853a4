"""
Locate and load the MESC configuration.

The config comes from a JSON file (``MESC_PATH``) or an inline JSON string
(``MESC_ENV``); ``MESC_MODE`` may force either source or disable MESC entirely.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from mesc.errors import ConfigReadError, InvalidConfigModeError, MescNotEnabledError
from mesc.overrides import apply_overrides
from mesc.types import ConfigMode, RpcConfig
from mesc.validate import validate_config

logger = logging.getLogger(__name__)

MODE_ENV_VAR = "MESC_MODE"
PATH_ENV_VAR = "MESC_PATH"
ENV_ENV_VAR = "MESC_ENV"


def get_config_mode() -> ConfigMode:
    """Resolve the config mode from MESC_MODE, falling back to which source is set."""
    raw_mode = os.getenv(MODE_ENV_VAR, "")
    if raw_mode:
        try:
            return ConfigMode(raw_mode.strip().upper())
        except ValueError as exc:
            raise InvalidConfigModeError(
                f"invalid MESC_MODE: {raw_mode!r}", code="INVALID_CONFIG_MODE"
            ) from exc
    if os.getenv(PATH_ENV_VAR):
        return ConfigMode.PATH
    if os.getenv(ENV_ENV_VAR):
        return ConfigMode.ENV
    return ConfigMode.DISABLED


def is_mesc_enabled() -> bool:
    """True when MESC is not disabled and a config source is set."""
    try:
        mode = get_config_mode()
    except InvalidConfigModeError:
        return False
    if mode is ConfigMode.DISABLED:
        return False
    return bool(os.getenv(PATH_ENV_VAR) or os.getenv(ENV_ENV_VAR))


def get_config_path() -> Optional[Path]:
    raw_path = os.getenv(PATH_ENV_VAR)
    if not raw_path:
        return None
    return Path(raw_path).expanduser()


def read_config_file(path: Path) -> RpcConfig:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("could not read MESC config file %s", path)
        raise ConfigReadError(f"could not read config file: {path}", code="IO_ERROR") from exc
    return RpcConfig.from_json(raw)


def read_config_env() -> RpcConfig:
    raw = os.getenv(ENV_ENV_VAR)
    if not raw:
        raise ConfigReadError("MESC_ENV is not set", code="ENV_READ_ERROR")
    return RpcConfig.from_json(raw)


def load_config(
    *,
    mode: Optional[ConfigMode] = None,
    path: Optional[str | Path] = None,
    apply_env_overrides: bool = True,
) -> RpcConfig:
    """
    Load, override and validate the MESC config.

    Args:
        mode: force a config mode instead of resolving it from the environment.
        path: read this file instead of MESC_PATH (implies PATH mode).
        apply_env_overrides: apply MESC_* override variables after loading.

    Raises:
        MescNotEnabledError: MESC is disabled.
        ConfigReadError: the config source could not be read.
        InvalidJsonError: the config source is not valid MESC JSON.
        IntegrityError: the resulting config failed validation.
    """
    if path is not None:
        mode = ConfigMode.PATH
    elif mode is None:
        mode = get_config_mode()

    if mode is ConfigMode.DISABLED:
        raise MescNotEnabledError("MESC is not enabled", code="MESC_NOT_ENABLED")

    if mode is ConfigMode.PATH:
        config_path = Path(path).expanduser() if path is not None else get_config_path()
        if config_path is None:
            raise ConfigReadError("MESC_PATH is not set", code="ENV_READ_ERROR")
        logger.debug("loading MESC config from %s", config_path)
        config = read_config_file(config_path)
    else:
        logger.debug("loading MESC config from MESC_ENV")
        config = read_config_env()

    if apply_env_overrides:
        apply_overrides(config)
    validate_config(config)
    return config
