import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global configuration for environment variables."""

    APP_NAME: str = "DoktorAi Chat Service"
    ENV: str = os.getenv("ENV", "development")

    # Server config
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8080))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Supabase (identity + relational store)
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_ANON_KEY: str | None = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_JWT_SECRET: str | None = os.getenv("SUPABASE_JWT_SECRET")

    POSTGRES_HOST: str | None = os.getenv("POSTGRES_HOST")
    POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
    POSTGRES_USER: str | None = os.getenv("POSTGRES_USER")
    POSTGRES_PASSWORD: str | None = os.getenv("POSTGRES_PASSWORD")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "postgres")

    # Generative provider
    GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY")
    GEMINI_ENDPOINT: str = os.getenv("GEMINI_ENDPOINT", "https://generativelanguage.googleapis.com")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Speech provider
    ELEVENLABS_API_KEY: str | None = os.getenv("ELEVENLABS_API_KEY")
    ELEVENLABS_BASE_URL: str = os.getenv("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1")
    ELEVENLABS_MODEL_ID: str = os.getenv("ELEVENLABS_MODEL_ID", "eleven_multilingual_v2")
    ELEVENLABS_VOICE_TR: str = os.getenv("ELEVENLABS_VOICE_TR", "IgiCa6883ksPGir0tfNK")
    ELEVENLABS_VOICE_EN: str = os.getenv("ELEVENLABS_VOICE_EN", "pBZVCk298iJlHAcHQwLr")

    # Synthesized audio storage / playback
    AUDIO_DIR: str = os.getenv("AUDIO_DIR", ".audio")
    AUDIO_PLAYER_COMMAND: str | None = os.getenv("AUDIO_PLAYER_COMMAND")

    # Image input: https hosts images may be fetched from (comma separated);
    # the Supabase project host is always allowed
    IMAGE_ALLOWED_HOSTS: str = os.getenv("IMAGE_ALLOWED_HOSTS", "")
    IMAGE_MAX_BYTES: int = int(os.getenv("IMAGE_MAX_BYTES", str(10 * 1024 * 1024)))

    # Synthesized audio older than this is deleted
    AUDIO_RETENTION_HOURS: float = float(os.getenv("AUDIO_RETENTION_HOURS", "24"))

    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "tr")
    PROVIDER_TIMEOUT_SECONDS: float = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30"))

    # Debug
    DEBUG: bool = os.getenv("DEBUG", "True").lower() in ("1", "true")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")


settings = Settings()
