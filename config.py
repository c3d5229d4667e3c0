import os
from typing import List


def normalize_cors_origins(origins_str: str) -> List[str]:
    """
    Normalize a comma-separated string of CORS origins.

    Handles:
    - Trim whitespace from each origin
    - Remove surrounding quotes (" and ')
    - Remove trailing slashes (/)
    - Filter out empty entries
    """
    if not origins_str:
        return []

    normalized = []
    for origin in origins_str.split(","):
        origin = origin.strip()

        if (origin.startswith('"') and origin.endswith('"')) or \
           (origin.startswith("'") and origin.endswith("'")):
            origin = origin[1:-1]

        origin = origin.strip().rstrip("/")

        if origin:
            normalized.append(origin)

    return normalized


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # --- DATABASE ---
    DATABASE_URL = os.getenv("DATABASE_URL")

    # --- GOOGLE AUTH & DRIVE ---
    GOOGLE_SERVICE_ACCOUNT_JSON = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON")
    # Service account subject for domain-wide delegation (optional)
    GOOGLE_IMPERSONATE_EMAIL = os.getenv("GOOGLE_IMPERSONATE_EMAIL", None)

    # Named endpoints: metadata calls (folder search/create) and media uploads
    # are built as two separately authenticated clients.
    DRIVE_API_ENDPOINT = os.getenv("DRIVE_API_ENDPOINT", "https://www.googleapis.com")
    DRIVE_UPLOAD_ENDPOINT = os.getenv("DRIVE_UPLOAD_ENDPOINT", "https://www.googleapis.com")

    USE_MOCK_DRIVE = _env_flag("USE_MOCK_DRIVE", "false")
    MOCK_DRIVE_DB_FILE = os.getenv("MOCK_DRIVE_DB_FILE", None)
    DRIVE_ROOT_FOLDER_ID = os.getenv("DRIVE_ROOT_FOLDER_ID", None)

    # 0 keeps the single-attempt behaviour: failures surface to the job log.
    DRIVE_API_MAX_RETRIES = int(os.getenv("DRIVE_API_MAX_RETRIES", "0"))
    FOLDER_RESERVATION_WAIT_SECONDS = float(os.getenv("FOLDER_RESERVATION_WAIT_SECONDS", "10"))

    # --- CRM ---
    # Salesforce-style key prefix identifying user records in link tables
    USER_RECORD_ID_PREFIX = os.getenv("USER_RECORD_ID_PREFIX", "005")

    # --- WEBHOOKS ---
    WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", None)

    # --- REDIS CACHE ---
    REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
    REDIS_CACHE_ENABLED = _env_flag("REDIS_CACHE_ENABLED", "true")
    REDIS_DEFAULT_TTL = int(os.getenv("REDIS_DEFAULT_TTL", "180"))

    # --- CORS ---
    _DEFAULT_CORS_ORIGINS = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", ",".join(_DEFAULT_CORS_ORIGINS))
    # Optional regex for extra origins, e.g. https://crm-[a-z0-9]+\.example\.com
    CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", None)

    # --- AUTH ---
    # HS256 secret used to verify bearer tokens issued by the CRM identity provider
    CRM_JWT_SECRET = os.getenv("CRM_JWT_SECRET", None)

    # --- UPLOAD JOBS & SCHEDULER ---
    SCHEDULER_ENABLED = _env_flag("SCHEDULER_ENABLED", "false")
    UPLOAD_RETRY_ENABLED = _env_flag("UPLOAD_RETRY_ENABLED", "false")
    UPLOAD_RETRY_MAX_ATTEMPTS = int(os.getenv("UPLOAD_RETRY_MAX_ATTEMPTS", "3"))
    UPLOAD_RETRY_INTERVAL_MINUTES = int(os.getenv("UPLOAD_RETRY_INTERVAL_MINUTES", "15"))
    UPLOAD_STALE_MINUTES = int(os.getenv("UPLOAD_STALE_MINUTES", "30"))

config = Config()
