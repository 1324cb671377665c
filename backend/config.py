import os
from dataclasses import dataclass

from dotenv import load_dotenv
load_dotenv()


CHAT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
IMAGE_API_BASE = os.getenv("IMAGE_API_BASE", "https://image.pollinations.ai")
IMAGE_CACHE_PATH = os.getenv("IMAGE_CACHE_PATH", os.path.join("data", "image_cache.sqlite3"))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    chat_model: str = CHAT_MODEL
    temperature: float = 0.7
    plan_timeout: float = 120.0
    image_api_base: str = IMAGE_API_BASE
    image_size: int = 1024
    image_timeout: float = 30.0
    image_cooldown: float = 5.0
    image_cache_path: str = IMAGE_CACHE_PATH
    backend_url: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            chat_model=os.getenv("OPENAI_MODEL", CHAT_MODEL),
            temperature=_env_float("PLAN_TEMPERATURE", 0.7),
            plan_timeout=_env_float("PLAN_TIMEOUT_SECONDS", 120.0),
            image_api_base=os.getenv("IMAGE_API_BASE", IMAGE_API_BASE).rstrip("/"),
            image_size=int(_env_float("IMAGE_SIZE", 1024)),
            image_timeout=_env_float("IMAGE_TIMEOUT_SECONDS", 30.0),
            image_cooldown=_env_float("IMAGE_COOLDOWN_SECONDS", 5.0),
            image_cache_path=os.getenv("IMAGE_CACHE_PATH", IMAGE_CACHE_PATH),
            backend_url=os.getenv("BACKEND_URL", "").strip().rstrip("/"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
