"""
Stockline – Django Settings (Infrastructure Only)
==================================================
Django hosts the persistence adapter. The reconciliation engine does
not depend on Django; it reads its EngineConfig from STOCKLINE below
through core.config.load_engine_config().
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("STOCKLINE_SECRET_KEY", "stockline-dev-key-replace-before-deployment")

DEBUG = os.environ.get("STOCKLINE_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── Stockline ─────────────────────────────────────────
    "adapters.django_store",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("STOCKLINE_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Logging ───────────────────────────────────────────────────
# The engine only emits records on "stockline.*" loggers.
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "loggers": {
        "stockline": {
            "handlers": ["console"],
            "level": os.environ.get("STOCKLINE_LOG_LEVEL", "INFO"),
        },
    },
}

# ── Reconciliation Engine ─────────────────────────────────────
# Keys map onto core.config.EngineConfig fields.
STOCKLINE = {
    "PAST_DAYS": 30,
    "FUTURE_DAYS": 90,
    "MERGE_BATCH_SIZE": 100,
    "MAX_PENDING_PER_KEY": 8,
    "MAX_ANCHOR_RETRIES": 1,
    "MAX_WORKERS": 1,
}
