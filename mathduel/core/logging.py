import logging
import logging.config
from pathlib import Path
from typing import Any

from mathduel.core.config import settings


def configure_logging(level: str | None = None, log_dir: str | None = None) -> None:
    log_level = (level or settings.LOG_LEVEL).upper()
    directory = log_dir if log_dir is not None else settings.LOG_DIR

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": log_level,
        },
    }
    if directory:
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "default",
            "level": log_level,
            "filename": str(path / "mathduel.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
        }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)s] %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {
            "level": log_level,
            "handlers": list(handlers),
        },
        "loggers": {
            "mathduel": {"level": log_level, "propagate": True},
            "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
        },
    }

    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
