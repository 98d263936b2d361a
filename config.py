"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "library_db")
DB_USER: str = os.getenv("DB_USER", "library_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

# Integration tests only run when this is set; the tables get truncated.
TEST_DATABASE_URL: str = os.getenv("TEST_DATABASE_URL", "")

# ── Borrowing Rules ───────────────────────────────────────
MAX_ACTIVE_BORROWINGS: int = int(os.getenv("MAX_ACTIVE_BORROWINGS", "5"))
FINE_PER_DAY: float = float(os.getenv("FINE_PER_DAY", "5000"))
DEFAULT_BORROW_DAYS: int = int(os.getenv("DEFAULT_BORROW_DAYS", "14"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
