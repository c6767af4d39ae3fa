"""Environment-driven settings for the SignalBoard dashboard."""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Project root directory (signalboard/)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

load_dotenv(os.path.join(BASE_DIR, ".env"))

# Firestore service-account credentials written by the analysis pipeline export
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "")
FIREBASE_CLIENT_EMAIL = os.getenv("FIREBASE_CLIENT_EMAIL", "")
FIREBASE_PRIVATE_KEY = os.getenv("FIREBASE_PRIVATE_KEY", "").replace("\\n", "\n")

# Working directory of the external analysis pipeline (optional)
PYTHON_PIPELINE_PATH = os.getenv("PYTHON_PIPELINE_PATH", "")

# Shared secret for POST /api/revalidate (optional)
REVALIDATION_SECRET = os.getenv("REVALIDATION_SECRET", "")

# Signs the session cookie that carries flash messages
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")

# Rendered pages are served from cache for this long
PAGE_REVALIDATE_SECONDS = int(os.getenv("PAGE_REVALIDATE_SECONDS", "300"))

REVALIDATION_SECRET_MIN_LENGTH = 32
_REQUIRED_VARS = ["FIREBASE_PROJECT_ID", "FIREBASE_CLIENT_EMAIL", "FIREBASE_PRIVATE_KEY"]


def validate_env(environ: dict[str, str] | None = None) -> None:
    """Raise ``ValueError`` naming every missing or malformed variable."""
    env = os.environ if environ is None else environ
    problems = [name for name in _REQUIRED_VARS if not env.get(name)]

    client_email = env.get("FIREBASE_CLIENT_EMAIL", "")
    if client_email and "@" not in client_email:
        problems.append("FIREBASE_CLIENT_EMAIL (not an email address)")

    secret = env.get("REVALIDATION_SECRET", "")
    if secret and len(secret) < REVALIDATION_SECRET_MIN_LENGTH:
        problems.append(f"REVALIDATION_SECRET (shorter than {REVALIDATION_SECRET_MIN_LENGTH} characters)")

    if problems:
        raise ValueError(f"Invalid environment variable(s): {', '.join(problems)}")
