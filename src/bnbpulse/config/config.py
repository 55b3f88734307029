"""
Configuration system for the BNB Pulse service.

This module provides a configuration model that can load settings from:
- Defaults
- Environment variables (including a local ``.env`` file)
- YAML files
- Python dictionaries
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from loguru import logger

from ..exceptions import ConfigurationError

DEFAULT_TTL_SECONDS: Dict[str, int] = {
    "supply": 300,
    "burn_rate": 30,
    "burn_info": 300,
    "backing": 300,
    "aster_tvl": 300,
    "yields": 300,
    "exchange_yields": 900,
    "lp_locking": 600,
    "chain_metrics": 15,
}


class ApiKeysConfig(BaseModel):
    """Credentials for every upstream integration."""
    nodereal_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("NODEREAL_API_KEY"))
    etherscan_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("ETHERSCAN_API_KEY"))
    binance_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("BINANCE_API_KEY"))
    binance_api_secret: Optional[str] = Field(default_factory=lambda: os.getenv("BINANCE_API_SECRET"))
    coingecko_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("COINGECKO_API_KEY"))


class HttpConfig(BaseModel):
    """Upstream request settings."""
    timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v):
        if not 1 <= v <= 3:
            raise ValueError("retry_attempts must be between 1 and 3")
        return v

    @field_validator("timeout_seconds", "retry_delay_seconds")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("value must not be negative")
        return v


class CacheConfig(BaseModel):
    """Configuration for the per-metric result cache."""
    enabled: bool = True
    ttl_seconds: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_TTL_SECONDS))
    serve_stale_on_failure: bool = True

    @field_validator("ttl_seconds")
    @classmethod
    def validate_ttls(cls, v):
        merged = dict(DEFAULT_TTL_SECONDS)
        merged.update(v or {})
        for metric, ttl in merged.items():
            if ttl < 0:
                raise ValueError(f"TTL for '{metric}' must not be negative")
        return merged

    def ttl_for(self, metric: str) -> int:
        """TTL for a metric, 0 when caching is disabled."""
        if not self.enabled:
            return 0
        return self.ttl_seconds.get(metric, 300)


class SupplyConfig(BaseModel):
    """Constants for the supply/burn metric."""
    initial_supply: int = 200_000_000
    target_supply: int = 100_000_000
    burn_address: Optional[str] = None

    @field_validator("burn_address")
    @classmethod
    def validate_burn_address(cls, v):
        if v in (None, ""):
            return None
        if not (v.startswith("0x") and len(v) == 42):
            raise ValueError(f"Invalid burn address: {v}")
        return v


class ServerConfig(BaseModel):
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_headers: List[str] = Field(
        default_factory=lambda: ["authorization", "x-client-info", "apikey", "content-type"]
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = "INFO"
    console_style: str = "clean"  # clean, timestamp, detailed
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    module_levels: Dict[str, str] = Field(default_factory=dict)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("console_style")
    @classmethod
    def validate_console_style(cls, v):
        valid_styles = ["clean", "timestamp", "detailed"]
        if v.lower() not in valid_styles:
            raise ValueError(f"Console style must be one of: {valid_styles}")
        return v.lower()

    def get_log_file_path(self) -> Optional[Path]:
        if not self.file_path:
            return None
        return Path(self.file_path)


class PulseConfig(BaseModel):
    """Top-level configuration."""
    api_keys: ApiKeysConfig = Field(default_factory=ApiKeysConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    supply: SupplyConfig = Field(default_factory=SupplyConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PulseConfig":
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PulseConfig":
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigurationError: If the YAML is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", cause=e)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        logger.info(f"Loaded configuration from {path}")
        return cls(**data)

    @classmethod
    def from_env(cls, prefix: str = "BNBPULSE_") -> "PulseConfig":
        """
        Load configuration from environment variables.

        Provider credentials use their unprefixed names (NODEREAL_API_KEY, ...)
        and are picked up by ``ApiKeysConfig`` defaults.
        """
        env_mappings = {
            f"{prefix}HTTP_TIMEOUT": ("http", "timeout_seconds"),
            f"{prefix}RETRY_ATTEMPTS": ("http", "retry_attempts"),
            f"{prefix}RETRY_DELAY": ("http", "retry_delay_seconds"),
            f"{prefix}CACHE_ENABLED": ("cache", "enabled"),
            f"{prefix}SERVE_STALE": ("cache", "serve_stale_on_failure"),
            f"{prefix}INITIAL_SUPPLY": ("supply", "initial_supply"),
            f"{prefix}TARGET_SUPPLY": ("supply", "target_supply"),
            f"{prefix}BURN_ADDRESS": ("supply", "burn_address"),
            f"{prefix}HOST": ("server", "host"),
            f"{prefix}PORT": ("server", "port"),
            f"{prefix}LOG_LEVEL": ("logging", "level"),
            f"{prefix}LOG_FILE": ("logging", "file_path"),
        }

        data: Dict[str, Dict[str, Any]] = {}
        for env_var, (section, key) in env_mappings.items():
            value = os.getenv(env_var)
            if value is None:
                continue
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            data.setdefault(section, {})[key] = value
            if env_var == f"{prefix}LOG_FILE":
                data["logging"]["enable_file"] = True

        for metric in DEFAULT_TTL_SECONDS:
            value = os.getenv(f"{prefix}TTL_{metric.upper()}")
            if value is not None:
                data.setdefault("cache", {}).setdefault("ttl_seconds", {})[metric] = int(value)

        return cls(**data)

    def merge_with(self, other: Dict[str, Any]) -> "PulseConfig":
        """
        Merge this configuration with a partial mapping, with the mapping taking precedence.
        """
        def deep_merge(base: dict, overlay: dict) -> dict:
            """Recursively merge dictionaries."""
            result = base.copy()
            for key, value in overlay.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        return PulseConfig.from_dict(deep_merge(self.to_dict(), other))

    def missing_credentials(self) -> List[str]:
        """
        Names of unset credentials. Integrations without them fail closed when called.
        """
        keys = self.api_keys
        missing = []
        if not keys.nodereal_api_key:
            missing.append("NODEREAL_API_KEY")
        if not keys.etherscan_api_key:
            missing.append("ETHERSCAN_API_KEY")
        if not keys.binance_api_key:
            missing.append("BINANCE_API_KEY")
        if not keys.binance_api_secret:
            missing.append("BINANCE_API_SECRET")
        return missing

    def setup_logging(self) -> None:
        """Configure logging based on the current settings."""
        from ..core.logging_config import setup_logging, create_module_filter

        console_filter = None
        if self.logging.module_levels:
            console_filter = create_module_filter(self.logging.module_levels)

        setup_logging(self.logging, console_filter)


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    use_env: bool = True,
    env_prefix: str = "BNBPULSE_",
    configure_logging: bool = True,
) -> PulseConfig:
    """
    Load configuration using the standard precedence:
    1. Default configuration
    2. Environment variables, after reading a local .env file (if use_env=True)
    3. Configuration file (if provided)

    Args:
        config_file: Optional path to YAML configuration file
        use_env: Whether to load from environment variables
        env_prefix: Prefix for environment variables
        configure_logging: Whether to install the loguru handlers

    Returns:
        PulseConfig instance
    """
    if use_env:
        load_dotenv()
        config = PulseConfig.from_env(env_prefix)
    else:
        config = PulseConfig(api_keys=ApiKeysConfig(
            nodereal_api_key=None,
            etherscan_api_key=None,
            binance_api_key=None,
            binance_api_secret=None,
            coingecko_api_key=None,
        ))

    if config_file:
        file_config = PulseConfig.from_yaml(config_file)
        config = config.merge_with(file_config.model_dump(exclude_unset=True))

    if configure_logging:
        config.setup_logging()

    missing_keys = config.missing_credentials()
    if missing_keys:
        logger.warning(f"Missing API keys: {', '.join(missing_keys)}")

    return config
