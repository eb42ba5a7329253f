"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from finplan_gateway.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_projection(
    request_id: str,
    user_id: str,
    months: int,
    at_risk: bool,
    minimum_balance: str,
    duration_ms: float,
) -> None:
    """Log projection outcome for analysis"""
    logging.info(
        "Projection computed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "projection_complete",
            "months": months,
            "risk_outcome": "negative_balance" if at_risk else "ok",
            "minimum_balance": minimum_balance,
            "duration_ms": duration_ms,
        },
    )


def log_series_created(request_id: str, user_id: str, recurrence: str, occurrences: int) -> None:
    logging.info(
        "Entries created",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "entries_created",
            "recurrence": recurrence,
            "occurrences": occurrences,
        },
    )


def log_settlement(request_id: str, user_id: str, target: str, target_id: str, timing: str, savings: str) -> None:
    logging.info(
        "Settlement recorded",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "settlement",
            "target": target,
            "target_id": target_id,
            "timing": timing,
            "savings": savings,
        },
    )


def log_invoice_payment(
    request_id: str,
    user_id: str,
    card_id: str,
    source_id: str,
    amount: str,
    covered_entries: int,
) -> None:
    logging.info(
        "Invoice paid",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "invoice_payment",
            "card_id": card_id,
            "source_account_id": source_id,
            "amount": amount,
            "covered_entries": covered_entries,
        },
    )
