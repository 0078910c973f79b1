from pydantic_settings import BaseSettings, SettingsConfigDict


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
class Settings(BaseSettings):
    """
    HAL settings managed by Pydantic.
    Reads from HAL_* environment variables and/or .env file.
    """
    # Link resolution
    ABSOLUTE: bool = False
    STRICT: bool = False

    # Absolute URL overrides (derived from the request when unset)
    PROTOCOL: str | None = None
    HOST: str | None = None
    HOSTNAME: str | None = None
    PORT: int | None = None

    # Rel documentation
    RELS_PATH: str = "/rels"

    # API root
    AUTO_API: bool = True
    API_PATH: str = "/api"

    # Content negotiation
    MEDIA_TYPES: list[str] = ["application/hal+json"]
    REQUIRE_HAL_JSON_ACCEPT_HEADER: bool = False

    # Config to read from .env file if available
    model_config = SettingsConfigDict(
        env_prefix="HAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
        )

settings = Settings()
