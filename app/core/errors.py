from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logger import get_logger

logger = get_logger(__name__)


class ReviewHubError(Exception):
    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class ValidationError(ReviewHubError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(ReviewHubError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(ReviewHubError):
    status_code = 409
    default_code = "CONFLICT"


class ConsistencyError(ReviewHubError):
    """An aggregate write found no item row: some earlier step broke referential integrity."""

    status_code = 500
    default_code = "AGGREGATE_TARGET_MISSING"


class StorageError(ReviewHubError):
    """The store failed; the unit of work was rolled back and nothing was applied."""

    status_code = 503
    default_code = "STORAGE_UNAVAILABLE"


# first offending body/path field -> machine readable code
_FIELD_ERROR_CODES = {
    "id": "INVALID_ID",
    "item_id": "INVALID_ITEM_ID",
    "user_id": "INVALID_USER_ID",
    "rating": "INVALID_RATING",
    "name": "INVALID_NAME",
    "category": "INVALID_CATEGORY",
}


def _code_for_request_error(request: Request, exc: RequestValidationError) -> str:
    for error in exc.errors():
        field = error.get("loc", ())[-1:]
        if not field:
            continue
        name = field[0]
        if name == "title":
            return "MISSING_TITLE" if request.method == "POST" else "INVALID_TITLE"
        if name in _FIELD_ERROR_CODES:
            return _FIELD_ERROR_CODES[name]
    return "VALIDATION_ERROR"


def reviewhub_error_handler(request: Request, exc: ReviewHubError):
    extra = {
        "event": "error_response",
        "status_code": exc.status_code,
        "code": exc.code,
        "method": request.method,
        "url": str(request.url),
    }
    if exc.status_code >= 500:
        logger.error(f"Error: {exc.message}", extra=extra)
    else:
        logger.warning(f"Error: {exc.message}", extra=extra)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


def request_validation_error_handler(request: Request, exc: RequestValidationError):
    code = _code_for_request_error(request, exc)
    first = exc.errors()[0] if exc.errors() else {}
    message = first.get("msg", "Invalid request")
    logger.warning(
        f"Request validation failed: {message}",
        extra={"event": "request_validation_error", "code": code, "method": request.method, "url": str(request.url)},
    )
    return JSONResponse(status_code=400, content={"error": message, "code": code})
