import os
from typing import Optional

from pydantic import BaseModel, Field


class RelaySettings(BaseModel):
    """Runtime configuration, read from the environment."""

    port: int = Field(default=3000, description="HTTP/WebSocket listen port.")
    address: str = Field(default="0.0.0.0", description="Listen address.")
    stats_interval_seconds: float = Field(default=30.0, gt=0, description="Stats broadcast period.")
    registration_deadline_seconds: float = Field(
        default=5.0, gt=0, description="Delay before warning about a connection that never registered."
    )
    shake_cooldown_ms: float = Field(default=1000.0, ge=0, description="Minimum gap between accepted shakes.")
    motion_threshold: float = Field(default=15.0, description="Motion samples at or below this are not forwarded.")
    static_path: Optional[str] = Field(default=None, description="Directory of client assets to serve.")
    log_level: str = Field(default="INFO", description="Level for the snowglobe logger.")

    @classmethod
    def from_env(cls) -> "RelaySettings":
        values = {
            "port": os.getenv("PORT"),
            "address": os.getenv("ADDRESS"),
            "stats_interval_seconds": os.getenv("STATS_INTERVAL_SECONDS"),
            "registration_deadline_seconds": os.getenv("REGISTRATION_DEADLINE_SECONDS"),
            "shake_cooldown_ms": os.getenv("SHAKE_COOLDOWN_MS"),
            "motion_threshold": os.getenv("MOTION_THRESHOLD"),
            "static_path": os.getenv("STATIC_PATH"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        return cls.model_validate({key: value for key, value in values.items() if value})
