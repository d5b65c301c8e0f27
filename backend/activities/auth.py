import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import SESSION_COOKIE_NAME
from .database import get_db
from .dependencies import get_identity_provider
from .identity import Identity
from .models import User
from .results import upstream
from .routes.responses import unwrap

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


def session_token(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("Authorization")
    if header and header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def resolve_identity(request: Request) -> Optional[Identity]:
    """Verify the request's session once and remember the outcome on request.state."""
    identity = getattr(request.state, "identity", _UNRESOLVED)
    if identity is not _UNRESOLVED:
        return identity

    token = session_token(request)
    identity = get_identity_provider(request).get_identity(token) if token else None
    request.state.identity = identity
    return identity


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    FastAPI dependency resolving the caller's user row, or None without a valid session.
    Core operations decide what an anonymous caller may do.
    Usage: user = Depends(get_current_user)
    """
    identity = resolve_identity(request)
    if identity is None:
        return None
    try:
        return db.get(User, identity.user_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to load user {identity.user_id}")
        unwrap(upstream("Failed to load account"))
