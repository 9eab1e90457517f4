from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    APP_NAME: str = "Tailor Style API"
    APP_ENV: str = "dev"
    API_PREFIX: str = "/v1"
    CORS_ORIGINS: str = "*"
    # Vision model
    OPENAI_API_KEY: str = ""
    VISION_MODEL: str = "gpt-4o"
    VISION_MAX_OUTPUT_TOKENS: int = 2000
    VISION_TIMEOUT_MS: int = 30000
    # Retry policy for model calls
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_INITIAL_DELAY_S: float = 1.0
    RETRY_MAX_DELAY_S: float = 10.0
    RETRY_BACKOFF_MULTIPLIER: float = 2.0
    # Response cache
    CACHE_TTL_S: int = 300
    CACHE_SWEEP_INTERVAL_S: int = 600
    # Image processing
    IMAGE_MAX_SIDE: int = 1024
    IMAGE_MAX_WIDTH: int = 2048
    IMAGE_MAX_HEIGHT: int = 2048
    IMAGE_JPEG_QUALITY: int = 80
    IMAGE_FETCH_TIMEOUT_S: float = 5.0
    # Client-side rate limit, 0 disables
    RATE_LIMIT_MAX_CALLS: int = 0
    RATE_LIMIT_WINDOW_S: float = 60.0
    # Retailer affiliate ids for shopping links
    AMAZON_AFFILIATE_TAG: str = ""
    NORDSTROM_AFFILIATE_ID: str = ""
    JCREW_AFFILIATE_ID: str = ""
    SUITSUPPLY_AFFILIATE_ID: str = ""

    @property
    def api_key_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY and self.OPENAI_API_KEY.strip())

    @property
    def cors_origin_list(self) -> List[str]:
        val = self.CORS_ORIGINS
        if not val: return []
        if val == "*": return ["*"]
        return [v.strip() for v in val.split(",")]

settings = Settings()
