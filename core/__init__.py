"""
Core Module - Foundation components for the Eliza engine
========================================================

This module provides the foundational components including:
- Configuration management
- Logging setup
- Exception handling
"""

from .config import Config, EngineConfig, ConsoleConfig, load_config, save_config
from .exceptions import (
    ElizaError,
    ConfigError,
    ScriptFormatError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "Config",
    "EngineConfig",
    "ConsoleConfig",
    "load_config",
    "save_config",
    "ElizaError",
    "ConfigError",
    "ScriptFormatError",
    "setup_logging",
    "get_logger",
]
