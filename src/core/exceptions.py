"""Custom exception classes and handlers."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    code = "business_error"

    def __init__(self, detail: str, status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ConfigurationError(BusinessLogicError):
    """Booking is unavailable: page disabled, breeder or appointment type unknown or disabled."""

    code = "booking_unavailable"

    def __init__(self, detail: str = "Booking unavailable", status_code: int = status.HTTP_403_FORBIDDEN):
        super().__init__(detail, status_code)


class BookingValidationError(BusinessLogicError):
    """The requested date or slot can never be booked as given."""

    code = "invalid_request"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_422_UNPROCESSABLE_ENTITY)


class ConflictError(BusinessLogicError):
    """The chosen slot was taken between display and submission."""

    code = "slot_taken"

    def __init__(self, detail: str = "Slot taken, please choose another"):
        super().__init__(detail, status.HTTP_409_CONFLICT)


class InvalidTransitionError(BusinessLogicError):
    code = "invalid_transition"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_409_CONFLICT)


class NotFoundError(BusinessLogicError):
    code = "not_found"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_404_NOT_FOUND)


class BookingTimeoutError(BusinessLogicError):
    code = "timeout"

    def __init__(self, detail: str = "Booking submission timed out"):
        super().__init__(detail, status.HTTP_504_GATEWAY_TIMEOUT)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(request: Request, exc: BusinessLogicError):
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(
            {"success": False, "message": exc.detail, "code": exc.code},
            status_code=exc.status_code,
        )
