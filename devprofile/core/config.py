# devprofile/core/config.py
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# ================== ENV ==================

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / "devprofile/.env")

def env(*names: str, default: Optional[str] = None) -> str:
    for n in names:
        v = os.environ.get(n)
        if v is not None and str(v).strip() != "":
            return v
    if default is not None:
        return default
    raise KeyError(f"Missing required env var. Tried: {', '.join(names)}")

# ================== JWT ==================

JWT_SECRET = os.environ.get("JWT_SECRET", "default_secret_key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = int(os.environ.get("JWT_EXPIRATION_HOURS", "24"))

# ================== ENCRYPTION ==================
# 64 hex chars (32 bytes) for AES-256

ENCRYPTION_KEY = os.environ.get("ENCRYPTION_KEY", "")

# ================== GITHUB OAUTH ==================

GITHUB_CLIENT_ID = os.environ.get("GITHUB_CLIENT_ID", "")
GITHUB_CLIENT_SECRET = os.environ.get("GITHUB_CLIENT_SECRET", "")
GITHUB_CALLBACK_URL = os.environ.get("GITHUB_CALLBACK_URL", "")
FRONTEND_URL = env("FRONTEND_URL", default="http://localhost:3001")

OAUTH_STATE_TTL_SECONDS = int(os.environ.get("OAUTH_STATE_TTL_SECONDS", "300"))
OAUTH_STATE_SWEEP_SECONDS = int(os.environ.get("OAUTH_STATE_SWEEP_SECONDS", "60"))

# ================== GITHUB SYNC ==================

GITHUB_REQUEST_DELAY_SECONDS = float(os.environ.get("GITHUB_REQUEST_DELAY_SECONDS", "0.1"))
GITHUB_SYNC_REPO_LIMIT = int(os.environ.get("GITHUB_SYNC_REPO_LIMIT", "50"))
GITHUB_RATE_LIMIT_FLOOR = 10
GITHUB_HTTP_TIMEOUT = float(os.environ.get("GITHUB_HTTP_TIMEOUT", "30"))

# ================== CORS ==================

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")

# ================== DATABASE ==================
# Using SQLite for local development

DATABASE_URL = os.environ.get("DATABASE_URL", "")

def get_database_url() -> str:
    """Get database URL - supports SQLite or MySQL."""
    if DATABASE_URL:
        return DATABASE_URL

    mysql_host = os.environ.get("MYSQL_HOST")
    if mysql_host:
        mysql_port = int(os.environ.get("MYSQL_PORT", "3306"))
        mysql_user = os.environ.get("MYSQL_USER", "root")
        mysql_password = os.environ.get("MYSQL_PASSWORD", "")
        mysql_db = os.environ.get("MYSQL_DB", "devprofile")
        return f"mysql+aiomysql://{mysql_user}:{mysql_password}@{mysql_host}:{mysql_port}/{mysql_db}?charset=utf8mb4"

    db_path = ROOT_DIR / "devprofile" / "devprofile.db"
    return f"sqlite+aiosqlite:///{db_path}"
