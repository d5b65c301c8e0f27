from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Pokemon, PokemonReview, User
from ..results import ActionResult, not_authenticated, not_found, ok, validate
from ..schemas import ListOptions, PokemonSave
from ..views import POKEMON_VIEW, ViewInvalidator, pokemon_detail_view
from . import reviews
from .common import db_failure, get_owned, list_options, list_owned

POKEMON_REVIEWS = reviews.ReviewKind(
    parent_model=Pokemon,
    review_model=PokemonReview,
    parent_field="pokemon_id",
    parent_label="Pokemon",
    detail_view=pokemon_detail_view,
)


def _saved(db: Session, user_id: str, external_id: str) -> Optional[Pokemon]:
    return db.query(Pokemon).filter(Pokemon.user_id == user_id, Pokemon.pokemon_id == external_id).first()


def list_pokemon(db: Session, user: Optional[User], options: Optional[dict] = None) -> ActionResult[List[Pokemon]]:
    if user is None:
        return not_authenticated()
    opts, error = validate(ListOptions, list_options(options))
    if error:
        return error
    try:
        return ok(list_owned(db, Pokemon, user.id, opts, Pokemon.name))
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch Pokemon")


def get_pokemon(db: Session, user: Optional[User], pokemon_id: str) -> ActionResult[Pokemon]:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Pokemon, pokemon_id, user.id)
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch Pokemon")
    return ok(obj) if obj else not_found("Pokemon")


def get_pokemon_detail(db: Session, user: Optional[User], pokemon_id: str) -> ActionResult[dict]:
    return reviews.get_detail(db, user, POKEMON_REVIEWS, pokemon_id)


def save_pokemon(db: Session, user: Optional[User], data: dict, views: ViewInvalidator) -> ActionResult[dict]:
    """
    Save a catalog Pokemon for the caller. Saving one that is already saved
    returns the existing row with created=False.
    """
    if user is None:
        return not_authenticated()
    parsed, error = validate(PokemonSave, data)
    if error:
        return error
    try:
        existing = _saved(db, user.id, parsed.pokemon_id)
        if existing:
            return ok({"id": existing.id, "created": False})
        obj = Pokemon(
            user_id=user.id,
            pokemon_id=parsed.pokemon_id,
            name=parsed.name,
            image_url=parsed.image_url,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except IntegrityError:
        # A concurrent save won the unique (user_id, pokemon_id) race
        db.rollback()
        try:
            existing = _saved(db, user.id, parsed.pokemon_id)
        except SQLAlchemyError:
            return db_failure(db, "Failed to save Pokemon")
        if existing:
            return ok({"id": existing.id, "created": False})
        return db_failure(db, "Failed to save Pokemon")
    except SQLAlchemyError:
        return db_failure(db, "Failed to save Pokemon")
    views.invalidate(POKEMON_VIEW)
    return ok({"id": obj.id, "created": True})


def delete_pokemon(db: Session, user: Optional[User], pokemon_id: str, views: ViewInvalidator) -> ActionResult[None]:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Pokemon, pokemon_id, user.id)
        if not obj:
            return not_found("Pokemon")
        db.delete(obj)
        db.commit()
    except SQLAlchemyError:
        return db_failure(db, "Failed to delete Pokemon")
    views.invalidate(POKEMON_VIEW)
    views.invalidate(pokemon_detail_view(pokemon_id))
    return ok()


def list_pokemon_reviews(db: Session, user: Optional[User], pokemon_id: str) -> ActionResult[List[PokemonReview]]:
    return reviews.list_reviews(db, user, POKEMON_REVIEWS, pokemon_id)


def create_pokemon_review(db: Session, user: Optional[User], pokemon_id: str, data: dict, views: ViewInvalidator) -> ActionResult[PokemonReview]:
    return reviews.create_review(db, user, POKEMON_REVIEWS, pokemon_id, data, views)


def update_pokemon_review(db: Session, user: Optional[User], review_id: str, data: dict, views: ViewInvalidator) -> ActionResult[PokemonReview]:
    return reviews.update_review(db, user, POKEMON_REVIEWS, review_id, data, views)


def delete_pokemon_review(db: Session, user: Optional[User], review_id: str, views: ViewInvalidator) -> ActionResult[None]:
    return reviews.delete_review(db, user, POKEMON_REVIEWS, review_id, views)
