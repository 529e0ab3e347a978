"""
Configuration Management - YAML-based configuration with environment overrides
=============================================================================

This module handles all configuration aspects including:
- Loading from YAML files
- Environment variable overrides
- Default values
- Configuration validation
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, asdict

from .exceptions import ConfigError


BUNDLED_SCRIPT = Path(__file__).resolve().parent.parent / "rules" / "scripts" / "doctor.txt"


@dataclass
class EngineConfig:
    """
    Response engine configuration.

    Selects the conversation script and tunes the randomized parts
    of response generation.
    """
    # Script file (text or YAML); empty means the bundled script
    script_path: str = ""

    # One response in typo_odds gets an adjacent-character swap; 0 disables
    typo_odds: int = 50

    # Seed for the engine's random source; None means unseeded
    seed: Optional[int] = None

    def resolve_script_path(self) -> Path:
        """Return the script to load, falling back to the bundled one."""
        if self.script_path:
            return Path(self.script_path).expanduser()
        return BUNDLED_SCRIPT

    def validate(self) -> None:
        """Validate engine configuration parameters."""
        if not isinstance(self.typo_odds, int) or self.typo_odds < 0:
            raise ConfigError(f"typo_odds must be a non-negative integer, got {self.typo_odds!r}")

        if self.seed is not None and not isinstance(self.seed, int):
            raise ConfigError(f"seed must be an integer, got {self.seed!r}")


@dataclass
class ConsoleConfig:
    """
    Interactive console configuration.

    Controls the prompt decoration and the artificial delay that
    makes replies feel typed rather than instant.
    """
    sleep_enabled: bool = False
    min_delay_ms: int = 1500
    max_delay_ms: int = 2000

    agent_prefix: str = "Eliza: "
    user_prefix: str = ">>"

    def validate(self) -> None:
        """Validate console configuration."""
        if self.min_delay_ms < 0:
            raise ConfigError("min_delay_ms cannot be negative")

        if self.max_delay_ms < self.min_delay_ms:
            raise ConfigError(
                f"max_delay_ms ({self.max_delay_ms}) must not be below "
                f"min_delay_ms ({self.min_delay_ms})"
            )


@dataclass
class Config:
    """
    Main configuration container.

    Aggregates all configuration sections into a single object
    and provides methods for loading, saving, and validating.
    """
    # Application settings
    app_name: str = "Eliza"
    version: str = "1.0.0"
    debug: bool = False

    # Write the debug log file as JSON lines
    log_json: bool = False

    # Configuration sections
    engine: EngineConfig = field(default_factory=EngineConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)

    # Paths (set at runtime)
    config_dir: str = ""
    log_dir: str = ""

    def validate(self) -> None:
        """
        Validate all configuration sections.

        Raises:
            ConfigError: If any configuration section is invalid
        """
        self.engine.validate()
        self.console.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "app_name": self.app_name,
            "version": self.version,
            "debug": self.debug,
            "log_json": self.log_json,
            "engine": asdict(self.engine),
            "console": asdict(self.console),
        }


def get_default_config_dir() -> Path:
    """
    Get the default configuration directory path.

    Returns:
        Path to the configuration directory
    """
    if "ELIZA_CONFIG_DIR" in os.environ:
        return Path(os.environ["ELIZA_CONFIG_DIR"])

    if "XDG_CONFIG_HOME" in os.environ:
        return Path(os.environ["XDG_CONFIG_HOME"]) / "eliza"

    home = Path.home()
    config_home = home / ".config"

    if config_home.exists():
        return config_home / "eliza"

    return home / ".eliza"


def load_config(config_path: Optional[str] = None, load_env: bool = True) -> Config:
    """
    Load configuration from YAML file with environment variable overrides.

    This function loads configuration in the following order:
    1. Default values from dataclass
    2. Values from YAML file
    3. Environment variable overrides

    Args:
        config_path: Path to configuration file (optional)
        load_env: Whether to load environment variable overrides

    Returns:
        Config object with loaded values

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    config = Config()
    config.config_dir = str(get_default_config_dir())
    config.log_dir = str(Path(config.config_dir) / "logs")

    if config_path:
        yaml_path = Path(config_path)
        if not yaml_path.exists():
            raise ConfigError("Config file not found", {"path": str(yaml_path)})
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    if yaml_path.exists():
        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}", {"path": str(yaml_path)})
        except UnicodeDecodeError:
            raise ConfigError("Config file is not valid UTF-8", {"path": str(yaml_path)})
        except IOError as e:
            raise ConfigError(f"Failed to read config file: {e}", {"path": str(yaml_path)})

        if not isinstance(yaml_config, dict):
            raise ConfigError("Config file must contain a mapping", {"path": str(yaml_path)})

        _apply_yaml_config(config, yaml_config)

    if load_env:
        _apply_env_overrides(config)

    config.validate()

    return config


def _apply_yaml_config(config: Config, yaml_config: Dict[str, Any]) -> None:
    """
    Apply YAML configuration values to Config object.

    Args:
        config: Config object to update
        yaml_config: Dictionary of configuration values from YAML
    """
    for key in ("app_name", "version", "debug", "log_json", "log_dir"):
        if key in yaml_config:
            setattr(config, key, yaml_config[key])

    for section in ("engine", "console"):
        section_cfg = yaml_config.get(section) or {}
        if not isinstance(section_cfg, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")

        section_obj = getattr(config, section)
        for key, value in section_cfg.items():
            if hasattr(section_obj, key):
                setattr(section_obj, key, value)


def _apply_env_overrides(config: Config) -> None:
    """
    Apply environment variable overrides to Config object.

    Environment variables follow the pattern: ELIZA_SECTION_KEY
    For example: ELIZA_ENGINE_TYPO_ODDS, ELIZA_CONSOLE_SLEEP_ENABLED

    Args:
        config: Config object to update
    """
    env_mappings = {
        "ELIZA_DEBUG": (None, "debug", bool),
        "ELIZA_LOG_DIR": (None, "log_dir"),
        "ELIZA_LOG_JSON": (None, "log_json", bool),

        # Engine settings
        "ELIZA_ENGINE_SCRIPT_PATH": ("engine", "script_path"),
        "ELIZA_ENGINE_TYPO_ODDS": ("engine", "typo_odds", int),
        "ELIZA_ENGINE_SEED": ("engine", "seed", int),

        # Console settings
        "ELIZA_CONSOLE_SLEEP_ENABLED": ("console", "sleep_enabled", bool),
        "ELIZA_CONSOLE_MIN_DELAY_MS": ("console", "min_delay_ms", int),
        "ELIZA_CONSOLE_MAX_DELAY_MS": ("console", "max_delay_ms", int),
    }

    for env_var, mapping in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section = mapping[0]
        key = mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str

        target = getattr(config, section) if section else config

        if converter == bool:
            converted = value.lower() in ("true", "1", "yes", "on")
        else:
            try:
                converted = converter(value)
            except ValueError:
                raise ConfigError(f"Invalid value for {env_var}: {value!r}")

        setattr(target, key, converted)


def save_config(config: Config, config_path: Optional[str] = None) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save
        config_path: Path to save configuration (optional)

    Raises:
        ConfigError: If configuration cannot be saved
    """
    if config_path:
        yaml_path = Path(config_path)
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    except IOError as e:
        raise ConfigError(f"Failed to save config file: {e}", {"path": str(yaml_path)})
