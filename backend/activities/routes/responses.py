from dataclasses import asdict

from fastapi import HTTPException, Response

from ..results import ActionResult, ErrorKind
from ..views import ViewInvalidator

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_AUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 502,
}


def unwrap(result: ActionResult):
    """Data of a successful result; HTTPException for a failed one."""
    if result.success:
        return result.data
    status = STATUS_BY_KIND.get(result.kind, 500)
    if result.kind is ErrorKind.VALIDATION and result.field_errors:
        status = 422
    raise HTTPException(
        status_code=status,
        detail={
            "error": result.error,
            "field_errors": [asdict(e) for e in result.field_errors],
        },
    )


def deleted(result: ActionResult) -> dict:
    unwrap(result)
    return {"deleted": True, "warnings": result.warnings}


def with_view_version(response: Response, views: ViewInvalidator, path: str) -> None:
    response.headers["X-View-Version"] = str(views.version(path))
