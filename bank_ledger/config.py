"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Bank ledger state machine configuration"""

    # Storage configuration
    storage_backend: str = "memory"  # memory or sqlite
    database_path: str = "bank_ledger.db"

    # State machine behaviour
    escape_keys: bool = True  # False = legacy account + "_" + bank keys
    strict_methods: bool = True  # Reject Adjust methods other than deposit/withdraw
    atomic_initialize: bool = False  # Only effective on transactional stores

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    class Config:
        env_prefix = "BANK_LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
