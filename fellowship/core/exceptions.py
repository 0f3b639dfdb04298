"""
Domain errors raised by services and translated to HTTP responses in main.py
"""


class FellowshipError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FellowshipError):
    """Malformed or policy-violating input. Raised before any write."""
    status_code = 400


class AuthorizationError(FellowshipError):
    """Caller does not own or cannot reach the resource."""
    status_code = 403


class NotFoundError(FellowshipError):
    status_code = 404


class DependencyFailure(FellowshipError):
    """The data store, storage or auth API rejected an operation."""
    status_code = 502
