from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    AUTH_COOKIE_NAME: str = "auth_token"
    COOKIE_SECURE: bool = False

    # Banco de dados
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: List[str] = ["*"]

    # Media
    MEDIA_DIR: str = "./uploads"
    MAX_UPLOAD_MB: int = 50
    IMPORT_MAX_MB: int = 200

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # LLM providers, tried in this order
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash-lite"
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_MODEL: str = "google/gemini-2.0-flash-exp:free"
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    # slide import only
    GROQ_VISION_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    PIXTRAL_MODEL: str = "mistralai/pixtral-12b"
    GPT4O_MINI_MODEL: str = "openai/gpt-4o-mini"
    LLM_TIMEOUT_SEC: float = 30.0

    # Synthetic teams
    TEST_BOT_ANSWER_DELAY_SEC: float = 1.0

    # Seed script
    ADMIN_USERNAME: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
