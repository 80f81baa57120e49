import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    app_env: str = "development"
    log_level: str = "info"
    cors_origins: List[str] = []
    host: str = "0.0.0.0"
    port: int = 8080
    # Author name used for join/leave notices
    system_sender: str = "System"
    join_notification: bool = True
    room_code_length: int = Field(default=6, ge=1)


@lru_cache
def get_settings() -> Settings:
    # Load .env if present (noop if already loaded)
    load_dotenv()
    origins = os.getenv("CORS_ORIGINS", "")
    origins_list = [o.strip() for o in origins.split(",") if o.strip()]
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "info"),
        cors_origins=origins_list,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        system_sender=os.getenv("SYSTEM_SENDER", "System"),
        join_notification=_env_flag("JOIN_NOTIFICATION", True),
        room_code_length=int(os.getenv("ROOM_CODE_LENGTH", "6")),
    )
