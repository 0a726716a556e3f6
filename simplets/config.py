"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings


class SimpletsConfig(BaseSettings):
    """Mutual-credit domain configuration"""

    # Domain
    domain_name: str = "clets"
    domain_description: str = ""

    # Database configuration
    database_url: str = "sqlite:///clets.sqlite"  # memory:// for a throwaway ledger

    # Business rules configuration
    minimal_amount: int = 10
    max_message_length: int = 140
    limit_preset: str = "standard"  # standard or legacy
    default_permission_tier: int = 1

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_prefix = "SIMPLETS_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = SimpletsConfig()


def get_config() -> SimpletsConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> SimpletsConfig:
    """Reload configuration from environment"""
    global config
    config = SimpletsConfig()
    return config
