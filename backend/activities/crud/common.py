import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..results import ActionResult, upstream
from ..schemas import ListOptions

logger = logging.getLogger(__name__)


def db_failure(db: Session, message: str) -> ActionResult:
    """Call from an `except SQLAlchemyError` block: roll back, log, and report upstream failure."""
    db.rollback()
    logger.exception(message)
    return upstream(message)


def get_owned(db: Session, model, obj_id: str, user_id: str):
    """Row `obj_id` of `model` when owned by `user_id`; None for missing and foreign rows alike."""
    return db.query(model).filter(model.id == obj_id, model.user_id == user_id).first()


def list_owned(db: Session, model, user_id: str, options: ListOptions, name_column):
    query = db.query(model).filter(model.user_id == user_id)
    if options.search and options.search.strip():
        query = query.filter(name_column.ilike(f"%{options.search.strip()}%"))
    column = name_column if options.sort_by == "name" else model.created_at
    query = query.order_by(column.asc() if options.sort_order == "asc" else column.desc())
    return query.all()


def average_rating(reviews: Iterable) -> float:
    ratings = [int(r.rating) for r in reviews]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def list_options(raw: Optional[dict], **defaults) -> dict:
    """Caller options over per-feature defaults, dropping unset values."""
    merged = dict(defaults)
    merged.update({k: v for k, v in (raw or {}).items() if v is not None})
    return merged
