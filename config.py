"""
Configuration management for the Sentiment Analyzer service.

Loads environment variables from .env file and provides typed access to configuration.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Application-level configuration."""

    # HTTP server
    APP_PORT = int(os.getenv("APP_PORT", "8080"))
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]

    # AI provider
    LLM_BACKEND = os.getenv("LLM_BACKEND", "anthropic")
    AI_API_KEY = os.getenv("AI_API_KEY", "")

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is set."""
        missing = []
        if cls.LLM_BACKEND == "anthropic" and not cls.AI_API_KEY:
            missing.append("AI_API_KEY")

        if missing:
            print(f"⚠️  Missing required environment variables: {', '.join(missing)}")
            print(f"   Please set them in .env file")
            return False

        return True


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  App Port: {Config.APP_PORT}")
    print(f"  LLM Backend: {Config.LLM_BACKEND}")
    print(f"  AI API Key: {'✓ Set' if Config.AI_API_KEY else '✗ Missing'}")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"\n  Validation: {'✓ PASSED' if Config.validate() else '✗ FAILED'}")
