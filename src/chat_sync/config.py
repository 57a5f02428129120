from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    STORE_BASE_URL: str = "http://localhost:3000/api/chat"
    STORE_TOKEN: str = ""
    USER_ID: str = ""
    USER_NAME: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    REDIS_URL: str = "redis://localhost:6379/0"
    BROADCAST_TOPIC_PREFIX: str = "conversation"
    BROADCAST_RECONNECT_SECONDS: float = 5.0

    PAGE_SIZE: int = 30
    MAX_MESSAGE_LENGTH: int = 5000

    LOAD_OLDER_THRESHOLD_PX: int = 100
    BOTTOM_THRESHOLD_PX: int = 50
    UNREAD_BADGE_CAP: int = 9
    INITIAL_FILL_CHECK_SECONDS: float = 0.3

    ENTITLEMENT_CODES: list[str] = [
        "WAITING_FAMILY_RESPONSE",
        "NO_SUBSCRIPTION",
        "PREMIUM_REQUIRED",
    ]

    LOG_LEVEL: str = "INFO"

    def topic_for(self, conversation_id: str) -> str:
        return f"{self.BROADCAST_TOPIC_PREFIX}:{conversation_id}"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
