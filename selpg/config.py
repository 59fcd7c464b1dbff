# Config
"""
Configuration for selpg.
Values come from the environment, optionally seeded from a .env file.
"""

import logging
import os
import shlex
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from selpg.utils.errors import ConfigurationError


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(name, raw)
    if value < 1:
        raise ConfigurationError(name, raw)
    return value


def _level_setting(name: str, default: str) -> str:
    raw = os.getenv(name) or default
    level = raw.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(name, raw)
    return level


class Settings:
    def __init__(self) -> None:
        # Logging
        self.log_level = _level_setting("SELPG_LOG_LEVEL", "WARNING")
        self.dev_mode = os.getenv("SELPG_DEV_MODE", "").lower() in ("1", "true", "yes")
        self.log_file_path = os.getenv("SELPG_LOG_FILE") or None

        # Paging
        self.default_page_length = _int_setting("SELPG_PAGE_LENGTH", 72)
        self.chunk_size = _int_setting("SELPG_CHUNK_SIZE", 4096)

        # Printing
        self.print_command = os.getenv("SELPG_PRINT_COMMAND", "lp")

    def get_print_command(self) -> list[str]:
        command = shlex.split(self.print_command)
        if not command:
            raise ConfigurationError("SELPG_PRINT_COMMAND", self.print_command)
        return command

    def get_log_file_path(self) -> Optional[Path]:
        if not self.log_file_path:
            return None
        path = Path(self.log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


# Singleton instance
_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        load_dotenv()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
