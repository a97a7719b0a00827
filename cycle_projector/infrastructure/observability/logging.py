"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "cycle-projector"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_feed(
    request_id: str,
    owner_id: str,
    notification_count: int,
    unread: int,
    duration_ms: float,
) -> None:
    """Log structured feed outcome for analysis"""
    logging.info(
        "Notification feed built",
        extra={
            "request_id": request_id,
            "owner_id": owner_id,
            "step": "feed_complete",
            "notification_count": notification_count,
            "unread_count": unread,
            "duration_ms": duration_ms,
        },
    )


def log_marked_read(request_id: str, owner_id: str, marked: int) -> None:
    """Log read-state changes"""
    logging.info(
        "Notifications marked read",
        extra={
            "request_id": request_id,
            "owner_id": owner_id,
            "step": "mark_read",
            "marked_count": marked,
        },
    )
