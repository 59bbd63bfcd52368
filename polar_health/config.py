from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Polar API
    POLAR_CLIENT_ID: str = ""
    POLAR_CLIENT_SECRET: str = ""
    POLAR_SCOPE: str = "accesslink.read_all"
    POLAR_AUTH_BASE_URL: str = "https://polarremote.com/v2"
    ACCESSLINK_BASE_URL: str = "https://www.polaraccesslink.com/v3"

    # URLs
    PUBLIC_URL: str = "http://localhost:3000"
    REDIRECT_URI: str = ""  # Empty means "{PUBLIC_URL}/auth/polar/callback"

    # Ephemeral state
    SESSION_TTL_SECONDS: int = 600  # 10 minutes to finish the Polar consent screen
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "*"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def redirect_uri(self) -> str:
        if self.REDIRECT_URI:
            return self.REDIRECT_URI
        return f"{self.PUBLIC_URL.rstrip('/')}/auth/polar/callback"

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_configured(self) -> bool:
        return bool(self.POLAR_CLIENT_ID and self.POLAR_CLIENT_SECRET)

settings = Settings()
