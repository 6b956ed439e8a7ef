import os

DATABASE_URL = os.environ.get("BARBOOK_DATABASE_URL", "sqlite:///./barbook.db")
LOG_LEVEL = os.environ.get("BARBOOK_LOG_LEVEL", "INFO").upper()

# Per-user checks are looser than global catalog curation
USER_SIMILARITY_THRESHOLD = float(os.environ.get("BARBOOK_USER_SIMILARITY_THRESHOLD", "0.85"))
GLOBAL_SIMILARITY_THRESHOLD = float(os.environ.get("BARBOOK_GLOBAL_SIMILARITY_THRESHOLD", "0.9"))

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "standard",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "barbook": {"level": LOG_LEVEL, "handlers": ["console"], "propagate": False},
    },
}
