"""
Account lifecycle: the identity provider owns credentials, the users table
owns profile data and anchors every owned row.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..identity import Identity, IdentityError, IdentityProvider
from ..identity import Session as AuthSession
from ..models import FoodPhoto, Photo, User
from ..results import ActionResult, ErrorKind, fail, not_authenticated, ok, upstream, validate
from ..schemas import LoginInput, SignupInput
from ..storage.base import StorageBackend
from ..views import LAYOUT_VIEW, ViewInvalidator
from .common import db_failure
from .photos import remove_blobs

logger = logging.getLogger(__name__)


def sign_up(db: Session, data: dict, identity: IdentityProvider, views: ViewInvalidator) -> ActionResult[User]:
    parsed, error = validate(SignupInput, data)
    if error:
        return error
    try:
        created: Identity = identity.sign_up(parsed.email, parsed.password)
    except IdentityError as e:
        return fail(ErrorKind.VALIDATION, str(e))
    try:
        user = User(id=created.user_id, email=parsed.email, name=parsed.name)
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        return db_failure(db, "Failed to create account")
    views.invalidate(LAYOUT_VIEW)
    return ok(user)


def sign_in(db: Session, data: dict, identity: IdentityProvider, views: ViewInvalidator) -> ActionResult[tuple]:
    """(User, Session) for valid credentials of a registered user."""
    parsed, error = validate(LoginInput, data)
    if error:
        return error
    try:
        session: AuthSession = identity.sign_in(parsed.email, parsed.password)
    except IdentityError as e:
        return fail(ErrorKind.NOT_AUTHENTICATED, str(e))

    resolved = identity.get_identity(session.access_token)
    if resolved is None:
        return upstream("Failed to establish session")
    try:
        user = db.get(User, resolved.user_id)
    except SQLAlchemyError:
        return db_failure(db, "Failed to load account")
    if user is None:
        return fail(ErrorKind.NOT_AUTHENTICATED, "Account is not registered")
    views.invalidate(LAYOUT_VIEW)
    return ok((user, session))


def sign_out(token: Optional[str], identity: IdentityProvider, views: ViewInvalidator) -> ActionResult[None]:
    """Ends the provider session. The caller clears the cookie regardless of the outcome."""
    warnings = []
    if token:
        try:
            identity.sign_out(token)
        except IdentityError as e:
            logger.warning(f"Provider sign-out failed: {e}")
            warnings.append(str(e))
    views.invalidate(LAYOUT_VIEW)
    return ok(warnings=warnings)


def delete_account(
    db: Session,
    user: Optional[User],
    token: Optional[str],
    identity: IdentityProvider,
    storage: StorageBackend,
    views: ViewInvalidator,
) -> ActionResult[None]:
    """
    Delete the user row (owned rows cascade), then the user's blobs (best
    effort), then the provider account, then end the session.
    """
    if user is None:
        return not_authenticated()
    user_id = user.id
    try:
        keys = [row.storage_path for row in db.query(Photo.storage_path).filter(Photo.user_id == user_id)]
        keys += [row.storage_path for row in db.query(FoodPhoto.storage_path).filter(FoodPhoto.user_id == user_id)]
        db.delete(user)
        db.commit()
    except SQLAlchemyError:
        return db_failure(db, "Failed to delete account")

    warnings = remove_blobs(storage, keys)

    try:
        identity.delete_user(user_id)
    except IdentityError as e:
        logger.error(f"Provider account {user_id} could not be deleted: {e}")
        return fail(ErrorKind.UPSTREAM, str(e))

    if token:
        try:
            identity.sign_out(token)
        except IdentityError as e:
            # Tokens of a deleted provider account are already dead
            logger.debug(f"Sign-out after account deletion: {e}")
    views.invalidate(LAYOUT_VIEW)
    return ok(warnings=warnings)
