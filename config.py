"""Centralized configuration for environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from models import RuleConfig

LOG_LEVEL_ENV = "BASEBALL_SIM_LOG_LEVEL"
RULES_PATH_ENV = "BASEBALL_SIM_RULES"
LOG_DIR_ENV = "BASEBALL_SIM_LOG_DIR"

DEFAULT_LOG_DIR = Path(__file__).resolve().parent / "data" / "game_logs"


def get_log_level(default: int = logging.WARNING) -> int:
    """Return the configured logging level, or ``default`` if unset or unknown."""
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def get_rules_path() -> Path | None:
    value = os.environ.get(RULES_PATH_ENV, "").strip()
    return Path(value) if value else None


def get_log_dir() -> Path:
    value = os.environ.get(LOG_DIR_ENV, "").strip()
    return Path(value) if value else DEFAULT_LOG_DIR


def load_rule_config(path: str | Path | None = None) -> RuleConfig:
    """Load a rule set from JSON, falling back to the env path, then defaults.

    Raises:
        FileNotFoundError: If an explicit or configured path does not exist.
        pydantic.ValidationError: If the file does not describe a valid rule set.
    """
    p = Path(path) if path else get_rules_path()
    if p is None:
        return RuleConfig()
    if not p.exists():
        raise FileNotFoundError(f"Rules file not found: {p}")
    return RuleConfig.model_validate_json(p.read_text(encoding="utf-8"))


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for command-line use."""
    level = logging.DEBUG if verbose else get_log_level()
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
