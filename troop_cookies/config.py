"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class TroopConfig(BaseSettings):
    """Troop cookie tracker configuration"""

    # Database configuration
    database_url: str = "sqlite:///troop_cookies.db"  # memory://, sqlite:///path or postgresql://...

    # Troop administrator (order czar)
    admin_username: str = "courtneys"
    admin_password: str = "change-me"
    admin_display_name: str = "Courtney S"
    seed_on_startup: bool = True

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    # Security configuration
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_hours: int = 24
    jwt_algorithm: str = "HS256"
    auth_enabled: bool = True

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Audit log display cap (most recent N entries)
    audit_display_limit: int = 200

    # Notification fan-out
    notification_webhook_url: str = ""  # Empty = disabled
    notification_webhook_timeout: float = 5.0

    class Config:
        env_prefix = "TROOP_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = TroopConfig()


def get_config() -> TroopConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> TroopConfig:
    """Reload configuration from environment"""
    global config
    config = TroopConfig()
    return config
