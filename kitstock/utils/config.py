"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseModel):
    """API configuration settings."""
    timeout: int = 30
    max_retries: int = 3
    retry_delay: int = 1
    exponential_backoff: bool = True


class SupabaseConfig(BaseModel):
    """Supabase REST endpoint configuration."""
    rest_path: str = "/rest/v1"
    inventory_table: str = "inventory"
    sales_table: str = "sales"
    expenses_table: str = "expenses"


class InventoryConfig(BaseModel):
    """Stock intake and sales defaults."""
    default_cost: float = 9.20
    default_sale_price: float = 20.00
    default_platform: str = "Vinted"
    record_stock_expense: bool = True
    # Sold rows are history; deleting them is refused unless enabled here.
    allow_delete_sold: bool = False
    clubs: List[str] = [
        "Barcelona", "Real Madrid", "Liverpool", "Bayern Munich",
        "Manchester United", "Arsenal", "PSG", "Chelsea", "Manchester City",
        "AC Milan", "Inter Milan", "Juventus", "Atletico Madrid", "Borussia Dortmund",
    ]


class LoggingFilesConfig(BaseModel):
    """Log file paths."""
    inventory: str = "logs/inventory.log"
    error: str = "logs/error.log"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    files: LoggingFilesConfig = LoggingFilesConfig()


class YAMLConfig(BaseModel):
    """Configuration loaded from YAML file."""
    api: APIConfig = APIConfig()
    supabase: SupabaseConfig = SupabaseConfig()
    inventory: InventoryConfig = InventoryConfig()
    logging: LoggingConfig = LoggingConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Supabase settings
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_key: str = Field(..., description="Supabase anon/service key")

    # Application settings
    environment: str = Field(default="development", description="Environment (development/production)")
    log_level: Optional[str] = Field(default=None, description="Override log level")
    port: int = Field(default=8000, description="Server port")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig:
    """Combined application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.env = Settings()

        # Load YAML config
        config_path = config_path or Path(__file__).parent.parent.parent / "config" / "config.yml"
        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_data = yaml.safe_load(f) or {}
                self.yaml = YAMLConfig(**yaml_data)
        else:
            self.yaml = YAMLConfig()

        # Override log level if specified in env
        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level

    @property
    def api(self) -> APIConfig:
        return self.yaml.api

    @property
    def supabase(self) -> SupabaseConfig:
        return self.yaml.supabase

    @property
    def inventory(self) -> InventoryConfig:
        return self.yaml.inventory

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()
