"""Configuration management for the Word Chains editorial engine."""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DIFFICULTY_PLAN = "EASY,EASY,EASY,EASY,EASY,EASY,MEDIUM,MEDIUM,MEDIUM,HARD"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    openai_api_key: Optional[str] = Field(None, validation_alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(None, validation_alias="ANTHROPIC_API_KEY")

    # Redis Configuration
    redis_url: str = Field("redis://localhost:6379", validation_alias="REDIS_URL")

    # Application Settings
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    # Model Configuration
    generation_model: str = Field("gpt-4.1", validation_alias="OPENAI_MODEL")
    generation_temperature: float = Field(0.5, validation_alias="OPENAI_TEMPERATURE")
    presence_penalty: float = Field(0.2, validation_alias="OPENAI_PRESENCE_PENALTY")
    frequency_penalty: float = Field(0.2, validation_alias="OPENAI_FREQUENCY_PENALTY")
    generation_max_tokens: int = Field(1200, validation_alias="OPENAI_MAX_TOKENS")

    # Generation Settings
    variety_days: int = Field(14, validation_alias="PUZZLE_VARIETY_DAYS")
    approve_status: str = Field("approved", validation_alias="PUZZLE_APPROVE_STATUS")
    max_reused_words: int = Field(4, validation_alias="MAX_REUSED_WORDS")
    retry_attempts: int = Field(8, validation_alias="RETRY_ATTEMPTS")
    retry_delay_seconds: float = Field(0.0, validation_alias="RETRY_DELAY_SECONDS")
    hard_block_endpoints: bool = Field(False, validation_alias="HARD_BLOCK_ENDPOINTS")
    difficulty_plan_raw: str = Field(DEFAULT_DIFFICULTY_PLAN, validation_alias="DIFFICULTY_PLAN")
    avoid_word_limit: int = Field(80, validation_alias="AVOID_WORD_LIMIT")

    # Daily Scheduling
    daily_window_days: int = Field(30, validation_alias="DAILY_WINDOW_DAYS")
    daily_launch_date: Optional[str] = Field(None, validation_alias="DAILY_LAUNCH_DATE")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def difficulty_plan(self) -> List[str]:
        """Difficulty labels for one generation session, in order."""
        return [label.strip().upper() for label in self.difficulty_plan_raw.split(",") if label.strip()]

    @property
    def launch_date_key(self) -> Optional[str]:
        """Configured launch date, or None when unset or blank."""
        if self.daily_launch_date and self.daily_launch_date.strip():
            return self.daily_launch_date.strip()
        return None


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
