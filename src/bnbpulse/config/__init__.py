"""
Configuration module for BNB Pulse.

Exports:
    - PulseConfig: The main Pydantic model for all configuration settings.
    - ApiKeysConfig, HttpConfig, CacheConfig, SupplyConfig, ServerConfig, LoggingConfig:
      Sub-models for specific configuration sections.
    - load_config: Function to load configuration from files and environment variables.
"""
from .config import (
    PulseConfig,
    ApiKeysConfig,
    HttpConfig,
    CacheConfig,
    SupplyConfig,
    ServerConfig,
    LoggingConfig,
    DEFAULT_TTL_SECONDS,
    load_config,
)

__all__ = [
    "PulseConfig",
    "ApiKeysConfig",
    "HttpConfig",
    "CacheConfig",
    "SupplyConfig",
    "ServerConfig",
    "LoggingConfig",
    "DEFAULT_TTL_SECONDS",
    "load_config",
]
