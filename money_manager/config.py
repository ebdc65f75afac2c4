# money_manager/config.py

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

# ---- DATABASE ----

DB_DEFAULT = "money_manager.db"


def db_path() -> Path:
    """Return the configured SQLite path. Read on every call so tests can repoint it."""
    return Path(os.getenv("MONEY_DB", DB_DEFAULT))


# ---- AUTH ----

SECRET_KEY = (
    os.environ.get("MONEY_SECRET_KEY")
    or os.environ.get("SECRET_KEY")
    or "money-manager-dev-secret-change-me"
)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))  # 7 days

# ---- HTTP ----

DEBUG = os.getenv("DEBUG", "false").strip().lower() == "true"


def cors_origins() -> List[str]:
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "*")
    if origins_env.strip() == "" or origins_env.strip() == "*":
        return ["*"]
    return [o.strip() for o in origins_env.split(",") if o.strip()]


# ---- CHATBOT MODEL HOST ----

OLLAMA_API_URL = os.getenv("OLLAMA_API_URL", "http://localhost:11434").rstrip("/")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:3b")
LLM_TIMEOUT_SEC = float(os.getenv("LLM_TIMEOUT_SEC", "30"))
LLM_STATUS_TIMEOUT_SEC = float(os.getenv("LLM_STATUS_TIMEOUT_SEC", "3"))

# ---- HOUSEKEEPING ----

NOTIFICATION_RETENTION_DAYS = 30

# ---- EMAIL ----


def smtp_settings() -> Optional[dict]:
    """SMTP settings, or None when email delivery is not configured.

    Read on every call so tests can switch delivery on and off.
    """
    user = os.getenv("EMAIL_USER", "").strip()
    password = os.getenv("EMAIL_PASSWORD", "")
    if not user or not password:
        return None
    return {
        "host": os.getenv("EMAIL_HOST", "smtp.gmail.com").strip(),
        "port": int(os.getenv("EMAIL_PORT", "587")),
        "secure": os.getenv("EMAIL_SECURE", "false").strip().lower() == "true",
        "user": user,
        "password": password,
        "sender": os.getenv("EMAIL_FROM", "").strip() or user,
        "timeout": float(os.getenv("EMAIL_TIMEOUT_SEC", "10")),
    }
