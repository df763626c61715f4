from __future__ import annotations

import logging
import logging.config
from pathlib import Path

LOG_FILE_NAME = "vacation_responder.log"
NOISY_LOGGERS = ("googleapiclient.discovery", "googleapiclient.discovery_cache", "google_auth_oauthlib")


def configure_logging(log_dir: Path, level: str = "INFO") -> Path:
    """Send log records to the console and to a rotating file under ``log_dir``.

    The Google client libraries log every discovery document fetch at INFO, so
    they are held at WARNING regardless of ``level``.
    """

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
            "console": {
                "format": "%(asctime)s %(levelname)s | %(message)s",
                "datefmt": "%H:%M:%S",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "standard",
                "filename": str(log_path),
                "maxBytes": 1_000_000,
                "backupCount": 3,
                "encoding": "utf-8",
            },
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "console",
            },
        },
        "loggers": {name: {"level": "WARNING"} for name in NOISY_LOGGERS},
        "root": {
            "handlers": ["file", "stdout"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging to %s at %s", log_path, level)
    return log_path
