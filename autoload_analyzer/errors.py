"""Error types raised by the autoload manager.

Each error carries a stable ``code`` and the HTTP status the API layer maps
it to. Messages are always human-readable and safe to show an operator.
"""


class AutoloadError(Exception):
    """Base class for all analyzer errors."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Error envelope used by the API.

        >>> NotFoundError("Option 'x' not found").to_dict()
        {'error': {'message': "Option 'x' not found", 'code': 'NOT_FOUND'}}
        """
        return {"error": {"message": self.message, "code": self.code}}


class ValidationError(AutoloadError):
    """Missing or malformed input."""

    code = "VALIDATION_ERROR"
    status_code = 400


class ProtectedError(AutoloadError):
    """Target is a core option."""

    code = "PROTECTED_OPTION"
    status_code = 403


class NotFoundError(AutoloadError):
    """No matching row, or an update that changed nothing."""

    code = "NOT_FOUND"
    status_code = 404


class InvalidStateError(AutoloadError):
    """Delete attempted on an option that is still autoloaded."""

    code = "INVALID_STATE"
    status_code = 409


class StoreError(AutoloadError):
    """Settings store read/write failure. Message is the store's own."""

    code = "STORE_ERROR"
    status_code = 500


class AuthorizationError(AutoloadError):
    """Caller lacks the admin capability."""

    code = "FORBIDDEN"
    status_code = 403
