import logging
from contextlib import contextmanager

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Missing fields"


class Conflict(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Slot already booked"


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Invalid booking or code"


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Booking not found"


class Unauthorized(BookingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class InternalFailure(BookingError):
    pass


@contextmanager
def storage_errors(message: str):
    """Turn database failures into InternalFailure(message)."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception(message)
        raise InternalFailure(message) from exc
