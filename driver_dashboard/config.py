# driver_dashboard/config.py
import os
from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ENV_PATH = os.path.join(PROJECT_ROOT, ".env")
load_dotenv(dotenv_path=ENV_PATH)

DEV_SESSION_SECRET = "truck-tracking-secret"


class Settings(BaseSettings):
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    SESSION_SECRET: Optional[str] = None
    FRONTEND_ORIGIN: str = "*"
    LOG_LEVEL: str = "INFO"

    TRUCK_CAPACITY_KG: float = 1200
    DEFAULT_STATION_RADIUS_KM: float = 100
    AVERAGE_SPEED_KMH: float = 60
    HTTP_TIMEOUT_SECONDS: float = 10

    DEMO_MODE: bool = False
    SEED_SAMPLE_DATA: bool = True

    class Config:
        env_file = ENV_PATH
        env_file_encoding = 'utf-8'
        extra = 'ignore'

    @property
    def llm_enabled(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def maps_enabled(self) -> bool:
        return bool(self.GOOGLE_MAPS_API_KEY)


settings = Settings()
