from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from apiclient.app.constants import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_INTERVAL_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TRANSIENT_STATUS_CODES,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    retries: int = Field(DEFAULT_RETRIES, validation_alias="API_CLIENT_RETRIES")
    # Per physical attempt. Zero or negative disables the timeout.
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, validation_alias="API_CLIENT_TIMEOUT_SECONDS")
    retry_interval_seconds: float = Field(
        DEFAULT_RETRY_INTERVAL_SECONDS,
        validation_alias="API_CLIENT_RETRY_INTERVAL_SECONDS",
    )
    # Empty selects the default transport.
    http_client_name: str = Field("", validation_alias="API_CLIENT_HTTP_CLIENT_NAME")
    transient_status_codes: list[int] = Field(
        default_factory=lambda: list(DEFAULT_TRANSIENT_STATUS_CODES),
        validation_alias="API_CLIENT_TRANSIENT_STATUS_CODES",
    )
    common_headers: dict[str, str] = Field(default_factory=dict, validation_alias="API_CLIENT_COMMON_HEADERS")
    user_agent: str = Field("", validation_alias="API_CLIENT_USER_AGENT")

    follow_redirects: bool = Field(True, validation_alias="API_CLIENT_FOLLOW_REDIRECTS")
    verify_tls: bool = Field(True, validation_alias="API_CLIENT_VERIFY_TLS")

    logging_enabled: bool = Field(True, validation_alias="API_CLIENT_LOGGING_ENABLED")
    json_case_insensitive: bool = Field(True, validation_alias="API_CLIENT_JSON_CASE_INSENSITIVE")
