from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Used by the seed script to bypass RLS

    # Field encryption (base64-encoded 32-byte AES key)
    encryption_key: str = ""

    # Session tokens
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Passwords and account tokens
    bcrypt_rounds: int = 10
    activation_token_ttl_hours: int = 72
    reset_token_ttl_minutes: int = 60

    # SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 465
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = "no-reply@scolitrack.local"
    smtp_use_ssl: bool = True
    app_url: str = "http://localhost:3000"  # Base URL used in activation/reset links

    # Initial super admin (seed script)
    super_admin_email: str = "admin@admin.com"
    super_admin_password: Optional[str] = None

    # App
    app_name: str = "scolitrack-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
