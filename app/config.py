"""Application configuration pulled from environment variables via pydantic."""
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger, mask_url_secrets
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration shared by the edge and internal services."""
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    service_name: str = "cep-weather"
    log_level: str = "INFO"
    port: int | None = None  # defaults per role in run_server.py

    geo_source: str = "viacep"  # options: viacep
    weather_source: str = "weatherapi"  # options: weatherapi
    viacep_url_template: str = "https://viacep.com.br/ws/{cep}/json/"
    weather_api_url: str = "https://api.weatherapi.com/v1/current.json"
    weather_api_key: str | None = None

    upstream_timeout_seconds: float = 5.0
    lookup_timeout_seconds: float = 15.0
    weather_max_attempts: int = 3
    weather_backoff_seconds: float = 0.1

    internal_service_url: str = Field(
        default="http://svc-b:8081/weather",
        validation_alias=AliasChoices("INTERNAL_SERVICE_URL", "SERVICE_B_URL"),
    )
    forward_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices("FORWARD_TIMEOUT_SECONDS", "TIMEOUT_SECONDS"),
    )

    @field_validator("weather_api_url", "internal_service_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("weather_api_key", mode="after")
    @classmethod
    def blank_key_is_missing(cls, v: str | None) -> str | None:
        """Treat an empty WEATHER_API_KEY the same as an unset one."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("weather_max_attempts", mode="after")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        if v < 1:
            raise ValueError("weather_max_attempts must be >= 1")
        return v


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    dumped = settings.model_dump(exclude={"weather_api_key"})
    dumped["internal_service_url"] = mask_url_secrets(dumped["internal_service_url"])
    logger.debug(f"Loaded settings: {dumped}")
