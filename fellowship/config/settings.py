from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for account deletion and push fan-out

    # Storage
    profile_photos_bucket: str = "profile-photos"
    profile_photos_list_limit: int = 100

    # Chat
    max_event_chat_exclusions: int = 5
    message_page_size: int = 50
    search_result_limit: int = 50

    # Push gateway (delivery itself is handled by the gateway)
    push_gateway_url: Optional[str] = None
    push_gateway_timeout: float = 10.0
    push_body_preview_length: int = 100

    # App
    app_name: str = "fellowship-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_push_gateway_url(self) -> str:
        if self.push_gateway_url:
            return self.push_gateway_url
        return f"{self.supabase_url.rstrip('/')}/functions/v1/send-push-notification"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
