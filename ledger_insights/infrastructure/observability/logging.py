"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from ledger_insights.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service name to every record"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_insights_generated(
    request_id: str,
    user_id: str,
    transaction_count: int,
    pattern_count: int,
    anomaly_count: int,
    forecast_months: int,
    duration_ms: float,
) -> None:
    """Log structured outcome of an advanced insights run"""
    logging.info(
        "Insights generated",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "insights_complete",
            "transaction_count": transaction_count,
            "pattern_count": pattern_count,
            "anomaly_count": anomaly_count,
            "forecast_months": forecast_months,
            "duration_ms": duration_ms,
        },
    )
