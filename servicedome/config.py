import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./servicedome.db")

# Auth - tokens are issued by the auth service, we only verify them
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    import warnings

    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:8081,http://localhost:19006,http://localhost:3000",
).split(",")

# Redis (page cache + arq queue)
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"
CACHE_ENABLED = os.getenv("CACHE_ENABLED", "true").lower() == "true"
PAGE_CACHE_TTL = int(os.getenv("PAGE_CACHE_TTL", "300"))

# Expo push delivery
EXPO_PUSH_URL = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
EXPO_ACCESS_TOKEN = os.getenv("EXPO_ACCESS_TOKEN")
PUSH_TIMEOUT_SECONDS = float(os.getenv("PUSH_TIMEOUT_SECONDS", "5.0"))
# "background" (after the response), "arq" (worker queue) or "disabled"
PUSH_DISPATCH_MODE = os.getenv("PUSH_DISPATCH_MODE", "background").lower()

# Notification log is trimmed to this many entries per user on every append
NOTIFICATION_LOG_LIMIT = int(os.getenv("NOTIFICATION_LOG_LIMIT", "50"))

# Pending -> Completed without passing through Confirmed (walk-in / instant services)
ALLOW_DIRECT_COMPLETION = os.getenv("ALLOW_DIRECT_COMPLETION", "false").lower() == "true"
