"""
Configuration Management Module
Loads and manages application configuration from config.yaml

Values from the YAML file can be overridden with environment variables using
the LEDGERBOOK_ prefix and "__" as the nesting delimiter, for example
LEDGERBOOK_DATABASE__PATH=/tmp/books.db
"""

import os
from pathlib import Path
from typing import Dict, List
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database configuration"""
    path: str = "./data/ledgerbook.db"


class ApiConfig(BaseModel):
    """API configuration"""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["http://localhost:3000"]


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = "INFO"
    file: str = "./logs/app.log"
    max_size: int = 10
    backup_count: int = 5
    console: bool = True
    colorize: bool = True


class AccountingConfig(BaseModel):
    """Posting and matching rules"""
    money_tolerance: float = 0.01
    # "delete" removes the ledger entries of a cancelled voucher,
    # "reverse" books offsetting entries instead
    cancel_mode: str = Field(default="delete", pattern="^(delete|reverse)$")
    match_date_window_days: int = 3


class NumberingConfig(BaseModel):
    """Voucher numbering configuration"""
    padding: int = 4
    prefixes: Dict[str, str] = {
        "sales": "SV",
        "purchase": "PV",
        "receipt": "RV",
        "payment": "PY",
        "journal": "JV",
        "contra": "CV",
        "debit_note": "DN",
        "credit_note": "CN",
    }


class SchedulerConfig(BaseModel):
    """Periodic job configuration"""
    enabled: bool = False
    auto_post_time: str = "00:15"
    recurring_interval_minutes: int = 60
    legacy_quarterly_overflow: bool = False


class NotificationConfig(BaseModel):
    """Notification delivery configuration"""
    enabled: bool = True
    webhook_url: str = ""
    timeout: float = 10.0
    max_attempts: int = 3
    initial_delay: float = 1.0


class AppConfig(BaseSettings):
    """Main application configuration"""
    model_config = SettingsConfigDict(
        env_prefix="LEDGERBOOK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    api: ApiConfig = ApiConfig()
    logging: LoggingConfig = LoggingConfig()
    accounting: AccountingConfig = AccountingConfig()
    numbering: NumberingConfig = NumberingConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    notifications: NotificationConfig = NotificationConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats the YAML file, which is passed as init kwargs
        return env_settings, init_settings, file_secret_settings


def load_config(config_path: str = None) -> AppConfig:
    """Load configuration from YAML file"""
    config_file = Path(config_path or os.environ.get("LEDGERBOOK_CONFIG", "config.yaml"))

    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
            return AppConfig(**config_data)

    return AppConfig()


# Global configuration instance
config = load_config()
