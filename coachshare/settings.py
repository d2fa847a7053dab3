import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # API Configuration
    api_base_url: str = Field(
        default="http://localhost:8000/api", alias="COACHSHARE_API_URL"
    )
    request_timeout: float = Field(default=30.0, alias="COACHSHARE_REQUEST_TIMEOUT")

    # Session Configuration
    token_path: str = Field(
        default="~/.coachshare/session.json", alias="COACHSHARE_TOKEN_PATH"
    )
    token_storage_key: str = Field(default="token", alias="COACHSHARE_TOKEN_KEY")
    login_route: str = Field(default="/auth/login", alias="COACHSHARE_LOGIN_ROUTE")

    # Cache Configuration
    response_cache_ttl_ms: int = Field(default=5000, alias="COACHSHARE_CACHE_TTL_MS")
    stats_cache_ttl_ms: int = Field(
        default=60000, alias="COACHSHARE_STATS_CACHE_TTL_MS"
    )

    # Retry Configuration
    retry_max_attempts: int = Field(default=2, alias="COACHSHARE_RETRY_MAX_ATTEMPTS")
    retry_initial_delay_ms: int = Field(
        default=500, alias="COACHSHARE_RETRY_INITIAL_DELAY_MS"
    )

    debug: bool = Field(default=False, alias="COACHSHARE_DEBUG")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (after .env is loaded)."""
        return cls.model_validate(dict(os.environ))


global_settings = Settings.from_env()
