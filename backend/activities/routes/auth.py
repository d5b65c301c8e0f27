from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user, session_token
from ..config import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE
from ..crud import users as crud
from ..database import get_db
from ..dependencies import get_identity_provider, get_storage, get_views
from ..identity import IdentityProvider
from ..results import not_authenticated
from ..schemas import SessionOut, UserOut
from ..storage.base import StorageBackend
from ..views import ViewInvalidator
from .responses import deleted, unwrap

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str, max_age) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=max_age,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _session_out(response: Response, user, session) -> SessionOut:
    _set_session_cookie(response, session.access_token, session.expires_in)
    return SessionOut(user=UserOut.model_validate(user), access_token=session.access_token, expires_in=session.expires_in)


@router.post("/signup", status_code=201)
def signup(
    response: Response,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    views: ViewInvalidator = Depends(get_views),
):
    user = unwrap(crud.sign_up(db, data, identity, views))
    signed_in = crud.sign_in(db, data, identity, views)
    if not signed_in.success:
        # e.g. the pool requires email confirmation before the first sign-in
        return {"user": UserOut.model_validate(user), "session": None, "message": signed_in.error}
    user, session = signed_in.data
    return {"user": UserOut.model_validate(user), "session": _session_out(response, user, session)}


@router.post("/login", response_model=SessionOut)
def login(
    response: Response,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    views: ViewInvalidator = Depends(get_views),
):
    user, session = unwrap(crud.sign_in(db, data, identity, views))
    return _session_out(response, user, session)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    identity: IdentityProvider = Depends(get_identity_provider),
    views: ViewInvalidator = Depends(get_views),
):
    result = crud.sign_out(session_token(request), identity, views)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"signed_out": True, "warnings": result.warnings}


@router.get("/me", response_model=UserOut)
def me(current_user=Depends(get_current_user)):
    if current_user is None:
        unwrap(not_authenticated())
    return current_user


@router.delete("/account")
def delete_account(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    identity: IdentityProvider = Depends(get_identity_provider),
    storage: StorageBackend = Depends(get_storage),
    views: ViewInvalidator = Depends(get_views),
):
    body = deleted(crud.delete_account(db, current_user, session_token(request), identity, storage, views))
    response.delete_cookie(SESSION_COOKIE_NAME)
    return body
