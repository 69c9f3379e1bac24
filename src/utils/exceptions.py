"""Custom exception classes."""


class RegistrationError(Exception):
    """Raised when a submission is rejected; rendered as {"error": message}."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class EventClosedError(RegistrationError):
    """Raised when the selected event is not accepting registrations."""

    def __init__(self, message: str):
        super().__init__(message, status_code=409)
