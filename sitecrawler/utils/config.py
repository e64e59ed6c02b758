"""
Configuration management for the site crawler.

Every setting has a default, so the crawler runs without any config file.
A YAML file may override any subset of the keys.
"""

import yaml
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union


# The target servers block clients that do not look like a browser
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (iPad; CPU OS 12_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/15E148"
)

DEFAULT_MAX_CONCURRENCY = 100


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: Optional[float] = None
    max_content_size: int = 10 * 1024 * 1024
    html_parser: str = 'lxml'
    startup_probe: bool = True
    stats_interval: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = 'INFO'
    file: Optional[str] = None
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000


@dataclass
class OutputConfig:
    """Configuration for result output."""
    file: Optional[str] = None
    print_registry: bool = True


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


_SECTIONS = {
    'crawler': CrawlerConfig,
    'logging': LoggingConfig,
    'monitoring': MonitoringConfig,
    'output': OutputConfig,
}

_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


def _build_section(name: str, cls, data: Optional[Dict[str, Any]]):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' section: {', '.join(sorted(unknown))}")

    return cls(**data)


def _check_field_types(name: str, section):
    """Reject values whose YAML type does not match the dataclass field."""
    for f in fields(section):
        value = getattr(section, f.name)
        expected = f.type

        if getattr(expected, '__origin__', None) is Union:
            if value is None:
                continue
            expected = next(arg for arg in expected.__args__ if arg is not type(None))

        if isinstance(value, bool) and expected is not bool:
            valid = False
        elif expected is float:
            valid = isinstance(value, (int, float))
        else:
            valid = isinstance(value, expected)

        if not valid:
            raise ValueError(f"'{name}.{f.name}' must be of type {expected.__name__}, got {value!r}")


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file, or defaults when no path is set."""
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file) or {}

            if not isinstance(config_data, dict):
                raise ValueError("Configuration file must contain a mapping")

        unknown = set(config_data) - set(_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        self._config = Config(**{
            name: _build_section(name, cls, config_data.get(name))
            for name, cls in _SECTIONS.items()
        })

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")

        for name in _SECTIONS:
            _check_field_types(name, getattr(self._config, name))

        crawler = self._config.crawler
        if crawler.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        if crawler.request_timeout is not None and crawler.request_timeout <= 0:
            raise ValueError("request_timeout must be positive when set")

        if crawler.max_content_size < 1:
            raise ValueError("max_content_size must be at least 1")

        if crawler.stats_interval < 0:
            raise ValueError("stats_interval must be non-negative")

        if not crawler.user_agent:
            raise ValueError("user_agent must not be empty")

        if self._config.logging.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self._config.logging.level}")

        if not 0 < self._config.monitoring.prometheus_port < 65536:
            raise ValueError("prometheus_port must be a valid TCP port")

        logging.getLogger(__name__).debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file, falling back to defaults."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config()
