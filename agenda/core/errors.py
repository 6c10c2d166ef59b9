"""Error taxonomy shared by the scheduling core and the HTTP layer."""

from fastapi import status


class AgendaError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'Request rejected.'
    description = 'The request could not be processed.'

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class FieldValidationError(AgendaError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'Invalid request data.'
    description = 'A request field failed validation.'

    def __init__(self, field: str, detail: str | None = None):
        self.field = field
        super().__init__(detail)


class FormatError(ValueError):
    """Raised for wall-clock strings that are not HH:MM."""


class PastSlotError(AgendaError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'Cannot book a time slot in the past.'
    description = 'The requested slot starts before the current time.'


class OutsideBookingWindowError(AgendaError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = 'This time slot is outside the booking window.'
    description = 'The requested slot violates the minimum notice or the advance booking horizon.'


class AlreadyBookedError(AgendaError):
    status_code = status.HTTP_409_CONFLICT
    detail = 'This time slot has already been booked.'
    description = 'Another event already occupies exactly this slot.'


class EventOverlapError(AgendaError):
    status_code = status.HTTP_409_CONFLICT
    detail = 'The event overlaps an existing event.'
    description = 'Events may not overlap each other.'


class NotFoundError(AgendaError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = 'Not found.'
    description = 'The requested resource does not exist.'


class NotAuthenticatedError(AgendaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = 'Not authenticated.'
    description = 'A valid bearer token is required.'


class NotAuthorizedError(AgendaError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = 'Only the calendar administrator can perform this action.'
    description = 'The authenticated user is not an administrator.'


class StoreUnavailableError(AgendaError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = 'Database unavailable. Please try again later.'
    description = 'The backing store could not be reached.'
