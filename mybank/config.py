"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional

from .currency import Currency


class MyBankConfig(BaseSettings):
    """mybank accounts API configuration"""

    # Storage configuration
    storage_backend: str = "sqlite"  # sqlite or memory
    database_path: str = "mybank.db"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: str = "*"  # Comma-separated list

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Business rules configuration
    withdrawal_fee: str = "1"
    transfer_fee: str = "8"
    prime_branch: int = 99
    currency: str = "BRL"

    class Config:
        env_prefix = "MYBANK_"
        env_file = ".env"
        case_sensitive = False

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        code = v.upper()
        if code not in Currency.__members__:
            raise ValueError(f"Unsupported currency {v!r}; expected one of {sorted(Currency.__members__)}")
        return code

    @property
    def withdrawal_fee_amount(self) -> Decimal:
        return Decimal(self.withdrawal_fee)

    @property
    def transfer_fee_amount(self) -> Decimal:
        return Decimal(self.transfer_fee)


# Global configuration instance
config = MyBankConfig()


def get_config() -> MyBankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> MyBankConfig:
    """Reload configuration from environment"""
    global config
    config = MyBankConfig()
    return config
