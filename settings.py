"""Runtime configuration read from the environment (and .env files) plus logging setup."""
import os
import logging
from dotenv import load_dotenv

load_dotenv()
load_dotenv(".env.local")

# --- Session Configuration ---
SESSION_SECRET = os.environ.get("SESSION_SECRET", "dev-secret-please-change")
SESSION_MAX_AGE = int(os.environ.get("SESSION_MAX_AGE", "86400"))  # seconds (24h)
SESSION_PRUNE_INTERVAL = int(os.environ.get("SESSION_PRUNE_INTERVAL", "3600"))  # 0 disables the sweeper
SESSION_HTTPS_ONLY = bool(int(os.environ.get("SESSION_HTTPS_ONLY", "0")))
SESSION_SAME_SITE = os.environ.get("SESSION_SAME_SITE", "lax")

# --- Bootstrap Data ---
ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "password123")
SEED_DEMO_DATA = bool(int(os.environ.get("SEED_DEMO_DATA", "1")))

# --- File Upload Configuration ---
UPLOAD_DIR = os.environ.get("UPLOAD_DIR", "uploads")
MAX_UPLOAD_FILES = int(os.environ.get("MAX_UPLOAD_FILES", "3"))
MAX_UPLOAD_SIZE = int(os.environ.get("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif"}
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

# Simple in-memory rate limiter for the login endpoint (per client host)
LOGIN_WINDOW = int(os.environ.get("LOGIN_WINDOW", "300"))  # seconds
LOGIN_MAX_ATTEMPTS = int(os.environ.get("LOGIN_MAX_ATTEMPTS", "5"))

MAPBOX_ACCESS_TOKEN = os.environ.get("MAPBOX_ACCESS_TOKEN")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def get_logger(name=__name__):
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, LOG_LEVEL, logging.INFO)
    )
    return logging.getLogger(name)
