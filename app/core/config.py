from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    database_url: str

    admin_api_key: str | None = (
        None  # Optional - if not set, admin endpoints are unprotected (dev mode)
    )

    # Tenant used when a request carries no subdomain
    default_subdomain: str = "default"

    # Spreadsheet webhook (Apps Script). Per-tenant URL in app_settings wins over this.
    spreadsheet_webhook_url: str | None = None
    spreadsheet_timeout_seconds: float = 10.0
    spreadsheet_origem: str = "formulario"

    # CRM webhook
    crm_timeout_seconds: float = 15.0
    crm_default_origem: str = "formulario-lovable"

    # WhatsApp rotation (compare-and-set attempts before accepting a stale cursor)
    rotation_max_retries: int = 3
    whatsapp_queue_max_entries: int = 5

    # Submission payload limits
    submission_max_string_length: int = 1000
    submission_max_array_items: int = 50
    submission_max_array_item_length: int = 500
    form_version: str = "v1"

    # Rate limiting
    rate_limit_enabled: bool = True  # Enable rate limiting for admin/beacon endpoints
    rate_limit_requests: int = 30  # Number of requests allowed per window
    rate_limit_window_seconds: int = 60  # Time window in seconds


# Settings will load from environment variables or .env file
# Required fields will raise ValidationError if missing (fail-fast)
settings = Settings()
