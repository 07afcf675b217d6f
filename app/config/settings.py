from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__(
            "Invalid environment configuration: " + "; ".join(problems)
        )


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # anon key, used for password sign-in / sign-up
    supabase_service_role_key: Optional[str] = None  # bypasses RLS; all table access goes through it

    # Agora
    agora_app_id: str = ""
    agora_app_certificate: str = ""
    agora_token_ttl_seconds: int = 3600

    # Sessions
    session_waiting_timeout_seconds: int = 225  # 3:45
    default_live_seconds: int = 900

    # App
    app_name: str = "consult-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production | test
    log_level: str = "INFO"
    cors_origins: str = "*"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    auth_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    build_version: str = "1.0.0"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing_required(self) -> List[str]:
        """Return one message per missing or invalid required field."""
        problems = []
        if not self.supabase_url:
            problems.append("SUPABASE_URL is required")
        elif not self.supabase_url.startswith(("http://", "https://")):
            problems.append("SUPABASE_URL must be an http(s) URL")
        if not self.supabase_key:
            problems.append("SUPABASE_KEY is required")
        if not self.supabase_service_role_key:
            problems.append("SUPABASE_SERVICE_ROLE_KEY is required")
        if not self.agora_app_id:
            problems.append("AGORA_APP_ID is required")
        if not self.agora_app_certificate:
            problems.append("AGORA_APP_CERTIFICATE is required")
        if self.agora_token_ttl_seconds <= 0:
            problems.append("AGORA_TOKEN_TTL_SECONDS must be positive")
        if self.session_waiting_timeout_seconds <= 0:
            problems.append("SESSION_WAITING_TIMEOUT_SECONDS must be positive")
        if self.environment not in ("development", "staging", "production", "test"):
            problems.append(f"ENVIRONMENT must be one of development, staging, production, test (got {self.environment!r})")
        return problems

    def validate_required(self) -> "Settings":
        problems = self.missing_required()
        if problems:
            raise ConfigurationError(problems)
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
