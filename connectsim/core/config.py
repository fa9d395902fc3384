"""
Configuration settings using Pydantic
"""
from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory
PROJECT_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_DIR / ".env"


class Settings(BaseSettings):
    """Simulator settings loaded from environment variables (prefix CONNECTSIM_)"""

    model_config = SettingsConfigDict(
        env_prefix="CONNECTSIM_",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "Connect Flow Simulator"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Assertions
    EXPECTATION_TIMEOUT_SECONDS: float = 2.0  # How long a check waits for new events

    # Module defaults
    LAMBDA_TIME_LIMIT_SECONDS: float = 8.0
    GET_USER_INPUT_TIMEOUT_SECONDS: float = 5.0
    DEFAULT_TERMINATOR: str = "#"
    DEFAULT_VOICE: str = "Joanna"

    # Call identity
    INSTANCE_ARN: str = "arn:aws:connect:eu-west-2:000000000000:instance/00000000-0000-0000-0000-000000000000"
    CHANNEL: str = "VOICE"

    # Guards against flows that loop forever without waiting for input
    MAX_MODULE_STEPS: int = 1000


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
