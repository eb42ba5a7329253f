"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./finplan.db"
    sql_echo: bool = False

    # Service
    service_name: str = "finplan-gateway"
    log_level: str = "INFO"

    # Projection
    default_projection_months: int = 3
    max_projection_months: int = 60

    # Loans
    default_daily_rate: Decimal = Decimal("0.0006")  # 0.06% per day

    # Credit cards
    closing_soon_days: int = 5


settings = Settings()
