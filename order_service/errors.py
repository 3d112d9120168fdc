"""
Errors raised by the order service.
Each carries the HTTP status code it is reported with.
"""
from fastapi import status


class OrderServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(OrderServiceError):
    """Missing or malformed input."""


class NotFoundError(OrderServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientStockError(OrderServiceError):
    pass


class AlreadyCancelledError(OrderServiceError):
    pass


class CancellationWindowExpiredError(OrderServiceError):
    """Orders may only be cancelled on the calendar day they were placed."""


class TerminalStateError(OrderServiceError):
    pass


class InvalidTransitionError(OrderServiceError):
    pass


class StorageError(OrderServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
