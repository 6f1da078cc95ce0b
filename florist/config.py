from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./florist.db"

    # Auth
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Translation
    GOOGLE_TRANSLATE_API_KEY: Optional[str] = None
    GOOGLE_TRANSLATE_URL: str = "https://translation.googleapis.com/language/translate/v2"
    TRANSLATION_TIMEOUT: float = 10.0
    SOURCE_LANGUAGE: str = "tr"
    TARGET_LANGUAGES: List[str] = ["en", "az", "ru"]
    MONTHLY_CHARACTER_LIMIT: int = 500000

    # Uploads
    UPLOADS_DIR: str = "uploads"
    MAX_FILE_SIZE: int = 5 * 1024 * 1024

    # Store profile shown before an admin fills it in
    STORE_NAME: str = "Hayat Flora"

    # Telegram admin notifications
    TOKEN: Optional[str] = None
    CHAT_ID: Optional[str] = None

    class Config:
        env_file = ".env"

settings = Settings()
