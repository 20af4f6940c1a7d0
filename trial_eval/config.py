"""
Configuration management for the trial evaluation engine.

Supports:
- Programmatic configuration via dataclasses
- YAML file loading
- Environment variable overrides
- Sensible defaults for all settings
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import logging
import os

import yaml

from .exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
PACKAGE_LOGGER = "trial_eval"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EngineConfig:
    """Default execution settings applied when RunOptions leaves them unset."""

    concurrency: int = 5
    retries: int = 0
    timeout_ms: int = 30000
    backoff_base_ms: float = 100.0  # Doubles before each further attempt

    def __post_init__(self):
        if self.concurrency < 1:
            raise ConfigurationError("concurrency must be at least 1")
        if self.retries < 0:
            raise ConfigurationError("retries cannot be negative")
        if self.timeout_ms <= 0:
            raise ConfigurationError("timeout_ms must be positive")
        if self.backoff_base_ms < 0:
            raise ConfigurationError("backoff_base_ms cannot be negative")


@dataclass
class LoggingConfig:
    """Configuration for engine log output."""

    level: str = "INFO"

    def __post_init__(self):
        self.level = self.level.upper()
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"log level must be one of {', '.join(_LOG_LEVELS)}, got {self.level}"
            )

    def apply(self) -> None:
        """Set the level of the trial_eval package logger."""
        logging.getLogger(PACKAGE_LOGGER).setLevel(self.level)


@dataclass
class Config:
    """Master configuration for the trial evaluation engine.

    Example usage:
        # Defaults
        config = Config.default()

        # From file
        config = Config.from_yaml(Path("trial_eval.yaml"))

        # Programmatic
        config = Config(engine=EngineConfig(concurrency=10, retries=2))
    """

    engine: EngineConfig = field(default_factory=EngineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            ConfigurationError: If file not found or invalid
        """
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config root in {path} must be a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        try:
            return cls(
                engine=EngineConfig(**data.get("engine", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}")

    @classmethod
    def default(cls) -> "Config":
        """Create configuration with all defaults."""
        return cls()

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration with environment variable overrides.

        Supported environment variables:
        - TRIAL_EVAL_CONCURRENCY: Maximum trials in flight
        - TRIAL_EVAL_RETRIES: Retries per trial
        - TRIAL_EVAL_TIMEOUT_MS: Per-attempt timeout in milliseconds
        - TRIAL_EVAL_BACKOFF_MS: Base backoff delay in milliseconds
        - TRIAL_EVAL_LOG_LEVEL: Log level name
        """
        engine = {}
        try:
            if concurrency := os.environ.get("TRIAL_EVAL_CONCURRENCY"):
                engine["concurrency"] = int(concurrency)
            if retries := os.environ.get("TRIAL_EVAL_RETRIES"):
                engine["retries"] = int(retries)
            if timeout := os.environ.get("TRIAL_EVAL_TIMEOUT_MS"):
                engine["timeout_ms"] = int(timeout)
            if backoff := os.environ.get("TRIAL_EVAL_BACKOFF_MS"):
                engine["backoff_base_ms"] = float(backoff)
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment override: {e}")

        log_settings = {}
        if level := os.environ.get("TRIAL_EVAL_LOG_LEVEL"):
            log_settings["level"] = level

        return cls(engine=EngineConfig(**engine), logging=LoggingConfig(**log_settings))

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (for serialization)."""
        return {
            "engine": {
                "concurrency": self.engine.concurrency,
                "retries": self.engine.retries,
                "timeout_ms": self.engine.timeout_ms,
                "backoff_base_ms": self.engine.backoff_base_ms,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False)


def configure_logging(config: Optional[Config] = None) -> None:
    """Configure logging for scripts embedding the engine.

    Installs a root handler with the standard format, then applies the
    config's log level to the trial_eval package logger.

    Args:
        config: Configuration (uses defaults if not provided)
    """
    config = config or Config.default()
    logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    config.logging.apply()
