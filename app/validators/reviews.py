from app.core.errors import ValidationError

MIN_RATING = 1
MAX_RATING = 5


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_id(value, code: str = "INVALID_ID") -> int:
    if not _is_int(value) or value < 1:
        raise ValidationError("Valid ID is required", code)
    return value


def validate_item_id(value) -> int:
    if not _is_int(value) or value < 1:
        raise ValidationError("Valid item_id is required", "INVALID_ITEM_ID")
    return value


def validate_user_id(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Valid user_id is required", "INVALID_USER_ID")
    return value.strip()


def validate_rating(value) -> int:
    if not _is_int(value) or not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(
            f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}", "INVALID_RATING"
        )
    return value


def validate_title(value, code: str = "MISSING_TITLE") -> str:
    if not isinstance(value, str) or not value.strip():
        message = "Title is required" if code == "MISSING_TITLE" else "Title must be a non-empty string"
        raise ValidationError(message, code)
    return value.strip()


def clean_comment(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Comment must be a string", "INVALID_COMMENT")
    cleaned = value.strip()
    return cleaned or None
