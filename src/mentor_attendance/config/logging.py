"""Logging setup for the command line entry point and long-running hosts."""

from __future__ import annotations

import logging
import logging.config
from datetime import datetime
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from mentor_attendance.config.settings import Settings

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class AttendanceJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.utcnow().isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def build_logging_config(level: str = "INFO", fmt: str = "plain") -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": PLAIN_FORMAT},
            "json": {
                "()": AttendanceJsonFormatter,
                "format": "%(timestamp)s %(level)s %(logger)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json" if fmt == "json" else "plain",
                "level": level,
            },
        },
        "loggers": {
            "mentor_attendance": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(config: Optional[Settings] = None, *, level: Optional[str] = None) -> logging.Logger:
    if config is None:
        from mentor_attendance.config.settings import settings as config

    effective_level = (level or config.log_level).upper()
    logging.config.dictConfig(build_logging_config(effective_level, config.log_format))
    logger = logging.getLogger("mentor_attendance")
    logger.debug("Logging initialized at %s (%s)", effective_level, config.log_format)
    return logger
