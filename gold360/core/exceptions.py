"""Domain errors raised by service functions and mapped to HTTP 400 by the views"""


class Gold360Error(Exception):
    """Base class for business rule violations"""

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_response_data(self):
        data = {'error': self.message}
        if self.details:
            data.update(self.details)
        return data


class ValidationFailed(Gold360Error):
    pass


class InsufficientStockError(Gold360Error):
    pass


class InvalidTransitionError(Gold360Error):
    pass


class InsufficientPointsError(Gold360Error):
    pass


class CarrierError(Gold360Error):
    """External carrier API could not be reached or returned an error"""
    pass
