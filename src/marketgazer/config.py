"""Configuration module for the MarketGazer dashboard."""

import os
from pathlib import Path
from dotenv import load_dotenv
from pydantic import BaseModel
from typing import List

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent.parent
LOGS_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))


class GeminiConfig(BaseModel):
    """Google Gemini API configuration."""
    api_key: str = os.getenv("GEMINI_API_KEY", "")
    model: str = os.getenv("GEMINI_MODEL", "models/gemini-2.5-flash")
    temperature: float = float(os.getenv("GEMINI_TEMPERATURE", "0.3"))
    max_retries: int = int(os.getenv("LLM_MAX_RETRIES", "3"))


class MarketConfig(BaseModel):
    """Finance data provider parameters."""
    # Regions tried in order until one yields enough trending equities
    trending_regions: List[str] = ["US", "GB", "IN", "CA", "AU", "DE", "HK"]
    trending_fetch_count: int = 15
    trending_result_count: int = 5

    news_count: int = 40
    default_news_query: str = "market news"

    max_compare_symbols: int = 4
    max_symbol_length: int = 5

    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "10"))
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    max_workers: int = 5


class StorageConfig(BaseModel):
    """Key/value storage configuration."""
    database_url: str = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'marketgazer.db'}")


class WebConfig(BaseModel):
    """Flask server configuration."""
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "5000"))
    debug: bool = os.getenv("FLASK_DEBUG", "0") == "1"
    cors_origins: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:9002").split(",")
        if origin.strip()
    ]
    client_cookie: str = "mg_client_id"


class Config(BaseModel):
    """Main configuration."""
    gemini: GeminiConfig = GeminiConfig()
    market: MarketConfig = MarketConfig()
    storage: StorageConfig = StorageConfig()
    web: WebConfig = WebConfig()

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Path = LOGS_DIR / "marketgazer.log"


# Global config instance
config = Config()


def validate_config() -> bool:
    """Validate that required API keys are set."""
    errors = []

    if not config.gemini.api_key or config.gemini.api_key == "your_gemini_api_key_here":
        errors.append("GEMINI_API_KEY not set in .env")

    if errors:
        print("❌ Configuration errors:")
        for error in errors:
            print(f"   - {error}")
        return False

    return True
