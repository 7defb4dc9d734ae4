"""Runtime settings resolved from the environment and an optional ``.env`` file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PATH_DEFAULT = Path(".env")
HOME_ENV = "EVMABI_HOME"
STRICT_ENV = "EVMABI_STRICT"
STRICT_PADDING_ENV = "EVMABI_STRICT_PADDING"
LOG_LEVEL_ENV = "EVMABI_LOG_LEVEL"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def state_dir() -> Path:
    """Return the directory holding evmabi state (logs).

    Defaults to ``~/.evmabi``; ``EVMABI_HOME`` overrides it.
    """

    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return Path.home() / ".evmabi"


def _flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Unable to parse boolean value {raw!r} for {name}")


@dataclass(frozen=True)
class Settings:
    home: Path
    strict_schema: bool = True
    strict_padding: bool = False
    log_level: str = "INFO"

    @property
    def log_dir(self) -> Path:
        return self.home / "logs"

    @property
    def log_file(self) -> Path:
        return self.log_dir / "evmabi.log"


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Read settings, loading ``env_file`` (default ``./.env``) without overriding real variables."""

    load_dotenv(env_file or ENV_PATH_DEFAULT, override=False)
    level = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper() or "INFO"
    if level not in _LEVELS:
        raise ValueError(f"Unknown log level {level!r} for {LOG_LEVEL_ENV}")
    return Settings(
        home=state_dir(),
        strict_schema=_flag(STRICT_ENV, True),
        strict_padding=_flag(STRICT_PADDING_ENV, False),
        log_level=level,
    )


__all__ = [
    "HOME_ENV",
    "LOG_LEVEL_ENV",
    "STRICT_ENV",
    "STRICT_PADDING_ENV",
    "Settings",
    "load_settings",
    "state_dir",
]
