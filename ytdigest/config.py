"""
Configuration settings for the YouTube transcript digest application.
"""

import os
from pathlib import Path
from dotenv import load_dotenv


# Ensure environment variables are loaded
load_dotenv()


def _path_from_env(name: str, default: Path) -> Path:
    value = os.getenv(name)
    return Path(value).expanduser() if value else default


class Config:
    """Base configuration class."""

    # Application info
    APP_NAME = "YouTube Transcript Digest"
    APP_VERSION = "0.2.0"

    # Data directories
    BASE_DIR = Path(__file__).resolve().parent.parent.absolute()
    DATA_DIR = _path_from_env("DATA_DIR", BASE_DIR / "data")
    TRANSCRIPTS_DIR = _path_from_env("TRANSCRIPTS_DIR", DATA_DIR / "transcripts")
    SUMMARIES_DIR = _path_from_env("SUMMARIES_DIR", DATA_DIR / "summaries")
    TMP_DIR = _path_from_env("TMP_DIR", BASE_DIR / "tmp")
    LOG_DIR = _path_from_env("LOG_DIR", BASE_DIR / "logs")

    # Summarization backend (Ollama)
    OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/")
    OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "qwen2.5:latest")

    # Speech-to-text (whisper.cpp)
    WHISPER_MODEL = os.getenv("WHISPER_MODEL", "base")
    WHISPER_MODEL_DIR = _path_from_env("WHISPER_MODEL_DIR", Path.home() / ".cache" / "whisper")

    # External tool timeouts, in seconds
    CAPTION_TIMEOUT = int(os.getenv("CAPTION_TIMEOUT", "60"))
    DOWNLOAD_TIMEOUT = int(os.getenv("DOWNLOAD_TIMEOUT", "900"))
    CONVERT_TIMEOUT = int(os.getenv("CONVERT_TIMEOUT", "300"))
    TRANSCRIBE_TIMEOUT = int(os.getenv("TRANSCRIBE_TIMEOUT", "600"))
    SUMMARY_TIMEOUT = int(os.getenv("SUMMARY_TIMEOUT", "180"))

    # Polling for the transcription engine's output file
    TRANSCRIPT_WAIT_ATTEMPTS = int(os.getenv("TRANSCRIPT_WAIT_ATTEMPTS", "30"))
    TRANSCRIPT_WAIT_INTERVAL = float(os.getenv("TRANSCRIPT_WAIT_INTERVAL", "1.0"))

    TRANSCRIPT_PREVIEW_LENGTH = int(os.getenv("TRANSCRIPT_PREVIEW_LENGTH", "500"))

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3001"))
    PUBLIC_URL = os.getenv("PUBLIC_URL", f"http://localhost:{PORT}")
    CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

    # Create data directories if they don't exist
    @classmethod
    def initialize(cls):
        """Initialize the application configuration."""
        cls.TRANSCRIPTS_DIR.mkdir(parents=True, exist_ok=True)
        cls.SUMMARIES_DIR.mkdir(parents=True, exist_ok=True)
        cls.TMP_DIR.mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    LOG_LEVEL = "INFO"


# Determine which configuration to use based on environment
def get_config():
    """Get the appropriate configuration based on environment."""
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env == "production":
        return ProductionConfig
    else:
        return DevelopmentConfig


# Create a config instance
config = get_config()
config.initialize()
