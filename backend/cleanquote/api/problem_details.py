import uuid
from http import HTTPStatus
from typing import Any, Iterable

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

PROBLEM_BASE_URI = "https://example.com/problems"
PROBLEM_TYPE_VALIDATION = f"{PROBLEM_BASE_URI}/validation-error"
PROBLEM_TYPE_CLIENT = f"{PROBLEM_BASE_URI}/client-error"
PROBLEM_TYPE_SERVER = f"{PROBLEM_BASE_URI}/server-error"
PROBLEM_MEDIA_TYPE = "application/problem+json"

_REQUEST_LOCATIONS = {"body", "query", "path", "header"}


def resolve_request_id(request: Request) -> str:
    """Request id set by middleware, the caller's header, or a fresh uuid."""
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    if not request_id:
        request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    return request_id


def _problem_type(status_code: int) -> str:
    if status_code == HTTPStatus.UNPROCESSABLE_ENTITY:
        return PROBLEM_TYPE_VALIDATION
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return PROBLEM_TYPE_SERVER
    return PROBLEM_TYPE_CLIENT


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def field_errors(raw_errors: Iterable[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error entries to ``{"field", "message"}`` pairs."""
    errors = []
    for error in raw_errors:
        parts = [str(part) for part in error.get("loc", ()) if part not in _REQUEST_LOCATIONS]
        errors.append({"field": ".".join(parts) or "body", "message": error.get("msg", "Invalid value")})
    return errors


def problem_details(
    request: Request,
    *,
    status: int,
    title: str | None,
    detail: str,
    errors: list[dict[str, Any]] | None = None,
    type_: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = resolve_request_id(request)
    response = JSONResponse(
        status_code=status,
        content={
            "type": type_ or _problem_type(status),
            "title": title or _status_phrase(status),
            "status": status,
            "detail": detail,
            "request_id": request_id,
            "errors": errors or [],
        },
        headers=headers,
        media_type=PROBLEM_MEDIA_TYPE,
    )
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def validation_problem(request: Request, exc: RequestValidationError) -> JSONResponse:
    return problem_details(
        request,
        status=HTTPStatus.UNPROCESSABLE_ENTITY.value,
        title="Validation Error",
        detail="Request validation failed",
        errors=field_errors(exc.errors()),
        type_=PROBLEM_TYPE_VALIDATION,
    )


def http_problem(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else None
    return problem_details(
        request,
        status=exc.status_code,
        title=detail or "HTTP Error",
        detail=detail or "Request failed",
        headers=getattr(exc, "headers", None),
    )


def server_problem(request: Request) -> JSONResponse:
    return problem_details(
        request,
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail="Unexpected error",
        type_=PROBLEM_TYPE_SERVER,
    )
