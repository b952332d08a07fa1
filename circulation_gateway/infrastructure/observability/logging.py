"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pythonjsonlogger import jsonlogger

from circulation_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


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


def log_rule_application(
    request_id: str,
    policy_type: str,
    policy_id: str,
    conditions: List[str],
    duration_ms: float,
) -> None:
    """Log which policy the circulation rules selected"""
    logging.info(
        "Circulation rules applied",
        extra={
            "request_id": request_id,
            "step": "rules_applied",
            "policy_type": policy_type,
            "policy_id": policy_id,
            "conditions": conditions,
            "duration_ms": duration_ms,
        },
    )


def log_overdue_calculation(
    request_id: str,
    loan_id: str,
    overdue_minutes: Optional[int],
    fine_amount: Optional[str],
    duration_ms: float,
) -> None:
    """Log the outcome of an overdue calculation for analysis"""
    logging.info(
        "Overdue calculation completed",
        extra={
            "request_id": request_id,
            "loan_id": loan_id,
            "step": "overdue_calculated",
            "outcome": "not_applicable" if overdue_minutes is None else "calculated",
            "overdue_minutes": overdue_minutes,
            "fine_amount": fine_amount,
            "duration_ms": duration_ms,
        },
    )
