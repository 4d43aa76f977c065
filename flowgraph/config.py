from __future__ import annotations

import logging
import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field

from .schema import BaseConfig


class Settings(BaseConfig):
    """Runtime settings for the CLI and HTTP API"""
    max_paths: int = Field(default=100, ge=1)
    direction: Literal["TB", "TD", "BT", "LR", "RL"] = "TB"
    theme: Literal["default", "dark", "forest", "neutral"] = "default"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Optional[str] = None


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read FLOWGRAPH_* variables (after loading a .env file if present)"""
    load_dotenv(env_file)

    values = {
        "max_paths": os.getenv("FLOWGRAPH_MAX_PATHS"),
        "direction": os.getenv("FLOWGRAPH_DIRECTION"),
        "theme": os.getenv("FLOWGRAPH_THEME"),
        "log_level": (os.getenv("FLOWGRAPH_LOG_LEVEL") or "").upper() or None,
        "log_file": os.getenv("FLOWGRAPH_LOG_FILE"),
    }
    return Settings(**{k: v for k, v in values.items() if v})


def setup_logging(verbose: bool = False, log_file: Optional[str] = None, level: str = "INFO") -> None:
    """Setup logging configuration"""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )

    # Third-party chatter
    logging.getLogger('matplotlib').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
