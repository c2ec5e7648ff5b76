"""
Configuration & Settings
Review Platform — trust scores & plan entitlements
"""

from pydantic import BaseModel
import os


class Settings(BaseModel):
    # App
    APP_NAME: str = "Review Platform API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "").lower() in ("1", "true", "yes")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./review_platform.db")

    # Trust score stabilizer
    # NEUTRAL_WEIGHT virtual reviews of NEUTRAL_RATING are blended into every
    # company's average, so a single 5-star review cannot produce a 5.0 score.
    NEUTRAL_RATING: float = 3.5
    NEUTRAL_WEIGHT: int = 7
    NEAR_PERFECT_THRESHOLD: float = 4.95

    # Badges
    MOST_RELEVANT_SCOPE_LIMIT: int = 5

    # Usage limits
    EMAIL_RESET_PERIOD_MONTHS: int = 1

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000


settings = Settings()
