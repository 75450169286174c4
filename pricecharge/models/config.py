"""Configuration models for the charge scheduler."""

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = Field("0.0.0.0", description="Server bind address")
    port: int = Field(8088, description="Server port")


class DatabaseConfig(BaseModel):
    """Relational store configuration."""
    url: str = Field("sqlite:///data/pricecharge.db", description="SQLAlchemy database URL")
    echo: bool = Field(False, description="Log SQL statements")


class SecurityConfig(BaseModel):
    """Secrets used for token encryption at rest."""
    token_encryption_key: str = Field(..., description="Secret used to derive the token encryption key")

    class Config:
        json_schema_extra = {
            "example": {
                "token_encryption_key": "change-me-to-a-long-random-string"
            }
        }


class TibberConfig(BaseModel):
    """Price provider configuration."""
    api_url: str = Field("https://api.tibber.com/v1-beta/gql", description="Tibber GraphQL endpoint")
    timeout: float = Field(10.0, description="Request timeout (seconds)")


class EaseeConfig(BaseModel):
    """Charger vendor configuration."""
    base_url: str = Field("https://api.easee.com", description="Easee cloud API base URL")
    timeout: float = Field(10.0, description="Request timeout (seconds)")


class CacheConfig(BaseModel):
    """Price cache TTL policy."""
    base_ttl_minutes: int = Field(15, description="Default TTL for cached prices")
    short_ttl_minutes: int = Field(2, description="TTL near publication or while tomorrow is missing")
    publication_hour: int = Field(13, ge=0, le=23, description="Local hour when day-ahead prices publish")
    publication_window_minutes: int = Field(30, description="Window around publication_hour using the short TTL")
    timezone: str = Field("Europe/Oslo", description="Local timezone of the price area")


class AutomationConfig(BaseModel):
    """In-process scheduled apply-cycles."""
    enabled: bool = Field(True, description="Run the automation job")
    interval_minutes: int = Field(15, ge=1, description="Minutes between apply-cycles")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")


class AppConfig(BaseModel):
    """Complete application configuration."""
    security: SecurityConfig
    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()
    tibber: TibberConfig = TibberConfig()
    easee: EaseeConfig = EaseeConfig()
    cache: CacheConfig = CacheConfig()
    automation: AutomationConfig = AutomationConfig()
    logging: LoggingConfig = LoggingConfig()
