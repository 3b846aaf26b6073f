"""
Environment-driven settings.

Every field maps to an upper-case environment variable (SNOWFLAKE_MOCK_MODE,
TUITION_LEVEL_CONFIG_ID, ...) or a line in .env. With
SNOWFLAKE_MOCK_MODE=true the service runs against the in-memory store and no
Snowflake credentials are needed.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the tuition API, its Snowflake store and the level catalog."""

    # API
    api_title: str = "SwimTuition API"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated admin API keys; several keys allow rotation"
    )
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated origins of the admin UI, or * in development"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    # Snowflake
    snowflake_account: str = Field(default="", description="Account identifier")
    snowflake_user: str = Field(default="", description="Service user")
    snowflake_password: str = Field(default="", description="Password, if not using a key")
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="PEM private key file for key-pair authentication"
    )
    snowflake_private_key_base64: Optional[str] = Field(
        default=None,
        description="Base64 of the PEM private key, for hosts without a key file"
    )
    snowflake_database: str = "SWIMTUITION"
    snowflake_schema: str = "TUITION"
    snowflake_warehouse: str = "COMPUTE_WH"
    snowflake_role: Optional[str] = None
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Serve from an in-memory store instead of Snowflake"
    )

    # Tuition
    tuition_level_config_id: str = Field(
        default="default",
        description="config_id of the saved level document"
    )
    tuition_fallback_time_slot: str = Field(
        default="7-8PM",
        description="Time slot for saved levels missing from the built-in catalog"
    )
    tuition_fallback_location: str = Field(
        default="Mary Wayte Pool",
        description="Location for saved levels missing from the built-in catalog"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        return _split_csv(self.api_keys)

    @property
    def cors_origins_list(self) -> list[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return _split_csv(self.cors_origins)

    def validate_required_fields(self) -> list[str]:
        """
        Names of settings that must be set but are not.

        Snowflake credentials only count outside mock mode, so this cannot
        be expressed as plain pydantic validation.
        """
        missing = []

        if not self.api_keys_list:
            missing.append("API_KEYS")
        if not self.tuition_level_config_id.strip():
            missing.append("TUITION_LEVEL_CONFIG_ID")

        if self.snowflake_mock_mode:
            return missing

        if not self.snowflake_account:
            missing.append("SNOWFLAKE_ACCOUNT")
        if not self.snowflake_user:
            missing.append("SNOWFLAKE_USER")
        if not (
            self.snowflake_password
            or self.snowflake_private_key_path
            or self.snowflake_private_key_base64
        ):
            missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        return missing


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings, read once.

    Tests override the get_settings dependency or call
    get_settings.cache_clear() after changing the environment.
    """
    return Settings()
