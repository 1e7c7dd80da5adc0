from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from app.api.v1.router import api_router
from app.config.settings import get_settings
from app.core.errors import ReviewHubError, reviewhub_error_handler, request_validation_error_handler
from app.core.logger import configure_logging

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)

app = FastAPI(title="ReviewHub", debug=settings.debug)
app.add_exception_handler(ReviewHubError, reviewhub_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.include_router(api_router, prefix="/api/v1")
