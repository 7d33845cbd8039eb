from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.exceptions.configuration import ConfigurationError


class Config(BaseSettings):
    """
    Application settings loaded from environment variables and .env files.

    This class handles all configuration for the weather chat assistant
    including API keys, provider endpoints and language model parameters.
    """

    # API Keys
    openai_api_key: str = Field(..., description="API key for the language model endpoint")
    openweather_api_key: str = Field(..., description="OpenWeatherMap API key for weather data")

    # Language Model Configuration
    openai_base_url: Optional[str] = Field(
        default=None, description="OpenAI-compatible base URL (defaults to OpenAI)"
    )
    openai_model: str = Field(default="gpt-4o-mini", description="Chat completion model name")
    agents_tracing: bool = Field(default=False, description="Enable OpenAI Agents SDK tracing")
    classifier_temperature: float = Field(default=0.1, ge=0, le=2)
    classifier_max_tokens: int = Field(default=50, ge=1)
    synthesis_temperature: float = Field(default=0.3, ge=0, le=2)
    synthesis_max_tokens: int = Field(default=1024, ge=1)
    chat_temperature: float = Field(default=0.7, ge=0, le=2)
    location_lookback_turns: int = Field(
        default=5, ge=0, description="Earlier user turns searched for an inherited location"
    )

    # OpenWeatherMap Configuration
    openweather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap data API base URL",
    )
    openweather_geo_url: str = Field(
        default="https://api.openweathermap.org/geo/1.0",
        description="OpenWeatherMap geocoding API base URL",
    )
    openweather_units: str = Field(
        default="metric", description="Provider units (metric/imperial/standard)"
    )

    # HTTP Client Configuration
    request_timeout: float = Field(default=15.0, gt=0, description="Upstream request timeout")
    retry_attempts: int = Field(default=3, ge=1, description="Attempts per upstream request")
    retry_backoff: float = Field(default=1.0, ge=0, description="Linear backoff in seconds")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="FastAPI host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="FastAPI port")
    api_token: Optional[str] = Field(default=None, description="API authentication token")

    # Logging Configuration
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json/text)")

    @field_validator("openai_api_key")
    def validate_openai_api_key(cls, v):
        if not v.strip():
            raise ValueError("OpenAI API key is required")
        return v.strip()

    @field_validator("openweather_api_key")
    def validate_openweather_api_key(cls, v):
        if not v.strip():
            raise ValueError("Weather API key is required")
        return v.strip()

    @field_validator("openweather_units")
    def validate_openweather_units(cls, v):
        valid_units = ["metric", "imperial", "standard"]
        if v.lower() not in valid_units:
            raise ValueError(f"Invalid units: {v}. Must be one of {valid_units}")
        return v.lower()

    @field_validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        if v.lower() not in ("json", "text"):
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'text'")
        return v.lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def load_config(**overrides) -> Config:
    """
    Load and validate the application settings.

    Called once at process start. Missing credentials are fatal.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    try:
        return Config(**overrides)
    except ValidationError as e:
        problems = ", ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
