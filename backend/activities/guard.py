"""
Request-level access guard: feature areas need a session, everything else is public.
"""

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse

from .auth import resolve_identity

PROTECTED_PREFIXES = ("/todo", "/drive", "/food", "/pokemon", "/notes")
ENTRY_PATH = "/"


def is_protected(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in PROTECTED_PREFIXES)


async def access_guard(request: Request, call_next):
    if is_protected(request.url.path):
        # Token verification may fetch signing keys; keep it off the event loop
        identity = await run_in_threadpool(resolve_identity, request)
        if identity is None:
            return RedirectResponse(url=ENTRY_PATH, status_code=303)
    return await call_next(request)
