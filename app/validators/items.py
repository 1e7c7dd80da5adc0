from app.core.errors import ValidationError


def _required_text(value, message: str, code: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, code)
    return value.strip()


def validate_name(value, creating: bool = True) -> str:
    if creating:
        return _required_text(value, "Name is required", "MISSING_NAME")
    return _required_text(value, "Name must be a non-empty string", "INVALID_NAME")


def validate_category(value, creating: bool = True) -> str:
    if creating:
        return _required_text(value, "Category is required", "MISSING_CATEGORY")
    return _required_text(value, "Category must be a non-empty string", "INVALID_CATEGORY")


def clean_optional_text(value) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None
