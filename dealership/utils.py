"""Helpers shared by the routers."""

import logging
import math
import re
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from dealership.schemas import Pagination

logger = logging.getLogger(__name__)

_TRANSLITERATION = {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"}


def slugify(text: str) -> str:
    """
    Build a URL slug.

    German umlauts are transliterated, every other run of characters outside
    a-z and 0-9 becomes a single hyphen.
    """
    slug = text.lower()
    for char, replacement in _TRANSLITERATION.items():
        slug = slug.replace(char, replacement)
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return slug.strip("-")


def paginate(query: Query, page: int, limit: int) -> Tuple[List, Pagination]:
    """Return one page of a query together with its pagination info."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    pagination = Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
    )
    return items, pagination


def next_number(db: Session, column) -> int:
    """Next value of a sequential business number (vehicle, customer, contract)."""
    current = db.query(func.max(column)).scalar()
    return (current or 0) + 1


def commit_or_raise(db: Session, action: str) -> None:
    """
    Commit the session, turning store errors into HTTP errors.

    Constraint violations become 400, anything else from the store 500.
    The session is rolled back in both cases.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"{action} failed on constraint: {e.orig}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{action} failed: {e.orig}"
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{action} failed: {str(e)}"
        )


def get_or_404(db: Session, model, object_id: int, detail: str):
    """Load a row by primary key or raise 404 with the given message."""
    obj = db.query(model).filter(model.id == object_id).first()
    if obj is None:
        logger.warning(f"{model.__name__} not found: {object_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return obj
