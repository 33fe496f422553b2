import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SESSION_BACKENDS = ("memory", "database")
SCORING_MODES = ("exact", "heuristic")


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_choice(name: str, default: str, choices) -> str:
    value = os.getenv(name, default).strip().lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./exam_service.db")

# "memory" keeps sessions/attempts in process, "database" uses DATABASE_URL
SESSION_BACKEND = _get_choice("SESSION_BACKEND", "database", SESSION_BACKENDS)

SCORING_MODE = _get_choice("SCORING_MODE", "exact", SCORING_MODES)

ENFORCE_TIME_LIMIT = _get_bool("ENFORCE_TIME_LIMIT", False)
TIME_LIMIT_GRACE_SECONDS = int(os.getenv("TIME_LIMIT_GRACE_SECONDS", "30"))

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

if JWT_SECRET == "change-me-in-production":
    logger.warning("JWT_SECRET is not set, using the development default")
