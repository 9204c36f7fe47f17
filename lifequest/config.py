"""Application configuration loaded from environment variables and .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_DIR = Path(__file__).resolve().parent / "data"


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./lifequest.db"
    DEBUG: bool = False
    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    # Static catalogs (skill trees, quests, questlines, enemies, activities)
    CATALOG_DIR: Path = DEFAULT_CATALOG_DIR

    # Progression tuning
    PERK_POINTS_PER_LEVEL: int = 1
    MAX_OPEN_ENCOUNTERS: int = 3
    ENCOUNTER_TTL_HOURS: int = 48


settings = Settings()
