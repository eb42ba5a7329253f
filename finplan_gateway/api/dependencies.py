"""Dependency injection and shared error translation for FastAPI endpoints"""

import logging
from datetime import date
from typing import NoReturn
from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from finplan_gateway.domain.exceptions import DomainException, InconsistencyError, ValidationError
from finplan_gateway.infrastructure.observability.metrics import domain_error_counter


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Reference date for "today"; overridden in tests"""
    return date.today()


def raise_domain_error(db: Session, error: DomainException, request_id: str) -> NoReturn:
    """Roll back pending writes and translate a domain error to an HTTP error"""
    db.rollback()
    if isinstance(error, ValidationError):
        domain_error_counter.labels(kind="validation").inc()
        logging.warning(f"Validation error: {error}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(error)) from error
    if isinstance(error, InconsistencyError):
        domain_error_counter.labels(kind="inconsistency").inc()
        logging.warning(f"Inconsistency: {error}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(error)) from error
    logging.error(f"Unexpected domain error: {error}", extra={"request_id": request_id})
    raise HTTPException(status_code=500, detail="Internal server error") from error
