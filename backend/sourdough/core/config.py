"""
Centralized application configuration
"""
import json

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment and .env"""

    # API Settings
    API_TITLE: str = "Happy Sourdough API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront and back-office API for Happy Sourdough bakery"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Public URL of the storefront (Stripe redirects, absolute image URLs)
    APP_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str = ""
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://happysourdough.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Payments
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_CURRENCY: str = "usd"

    # Email
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Happy Sourdough <orders@happysourdough.com>"
    EMAIL_REPLY_TO: str = "support@happysourdough.com"

    # Rate limiting window (seconds)
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
