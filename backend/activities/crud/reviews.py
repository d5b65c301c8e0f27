"""
Reviews hang off a parent row (food photo or saved Pokemon). Writes check the
parent is owned by the caller before touching the review itself.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User, utcnow
from ..results import ActionResult, ErrorKind, FieldError, fail, not_authenticated, not_found, ok, validate
from ..schemas import ReviewInput, is_uuid
from ..views import ViewInvalidator
from .common import average_rating, db_failure, get_owned


@dataclass(frozen=True)
class ReviewKind:
    parent_model: type
    review_model: type
    parent_field: str
    parent_label: str
    detail_view: Callable[[str], str]

    def parent_column(self):
        return getattr(self.review_model, self.parent_field)


def _reviews_for(db: Session, kind: ReviewKind, parent_id: str):
    return (
        db.query(kind.review_model)
        .filter(kind.parent_column() == parent_id)
        .order_by(kind.review_model.created_at.desc())
        .all()
    )


def list_reviews(db: Session, user: Optional[User], kind: ReviewKind, parent_id: str) -> ActionResult:
    if user is None:
        return not_authenticated()
    try:
        parent = get_owned(db, kind.parent_model, parent_id, user.id)
        if not parent:
            return not_found(kind.parent_label)
        return ok(_reviews_for(db, kind, parent_id))
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch reviews")


def get_detail(db: Session, user: Optional[User], kind: ReviewKind, parent_id: str) -> ActionResult[dict]:
    """Parent row, its reviews, and the derived average rating."""
    if user is None:
        return not_authenticated()
    try:
        parent = get_owned(db, kind.parent_model, parent_id, user.id)
        if not parent:
            return not_found(kind.parent_label)
        reviews = _reviews_for(db, kind, parent_id)
    except SQLAlchemyError:
        return db_failure(db, f"Failed to fetch {kind.parent_label}")
    return ok({
        "parent": parent,
        "reviews": reviews,
        "average_rating": average_rating(reviews),
        "review_count": len(reviews),
    })


def create_review(db: Session, user: Optional[User], kind: ReviewKind, parent_id: str, data: dict, views: ViewInvalidator) -> ActionResult:
    if user is None:
        return not_authenticated()
    if not is_uuid(parent_id):
        message = f"Invalid {kind.parent_label} ID"
        return fail(ErrorKind.VALIDATION, message, [FieldError(kind.parent_field, message)])
    parsed, error = validate(ReviewInput, data)
    if error:
        return error
    try:
        parent = get_owned(db, kind.parent_model, parent_id, user.id)
        if not parent:
            return not_found(kind.parent_label)
        review = kind.review_model(
            user_id=user.id,
            content=parsed.content,
            rating=parsed.rating,
            **{kind.parent_field: parent.id},
        )
        db.add(review)
        db.commit()
        db.refresh(review)
    except SQLAlchemyError:
        return db_failure(db, "Failed to create review")
    views.invalidate(kind.detail_view(parent_id))
    return ok(review)


def update_review(db: Session, user: Optional[User], kind: ReviewKind, review_id: str, data: dict, views: ViewInvalidator) -> ActionResult:
    if user is None:
        return not_authenticated()
    parsed, error = validate(ReviewInput, data)
    if error:
        return error
    try:
        review = get_owned(db, kind.review_model, review_id, user.id)
        if not review:
            return not_found("Review")
        review.content = parsed.content
        review.rating = parsed.rating
        review.updated_at = utcnow()
        db.commit()
        db.refresh(review)
    except SQLAlchemyError:
        return db_failure(db, "Failed to update review")
    views.invalidate(kind.detail_view(getattr(review, kind.parent_field)))
    return ok(review)


def delete_review(db: Session, user: Optional[User], kind: ReviewKind, review_id: str, views: ViewInvalidator) -> ActionResult:
    if user is None:
        return not_authenticated()
    try:
        review = get_owned(db, kind.review_model, review_id, user.id)
        if not review:
            return not_found("Review")
        parent_id = getattr(review, kind.parent_field)
        db.delete(review)
        db.commit()
    except SQLAlchemyError:
        return db_failure(db, "Failed to delete review")
    views.invalidate(kind.detail_view(parent_id))
    return ok()
