"""Application settings read from the environment."""
import os
from dataclasses import dataclass

from edufinder.db import DEFAULT_DB_PATH

DEFAULT_MODEL = "gemini-2.0-flash"


@dataclass
class AppConfig:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    db_path: str = DEFAULT_DB_PATH
    log_level: str = "WARNING"
    chapter_count: int = 15
    question_count: int = 20
    revision_point_count: int = 10

    @property
    def is_online(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ=None) -> "AppConfig":
        """Build settings from GEMINI_API_KEY / API_KEY and EDUFINDER_* variables."""
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY") or "",
            model=env.get("EDUFINDER_MODEL") or DEFAULT_MODEL,
            db_path=env.get("EDUFINDER_DB") or DEFAULT_DB_PATH,
            log_level=(env.get("EDUFINDER_LOG_LEVEL") or "WARNING").upper(),
        )
