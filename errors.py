"""Error taxonomy for the PawFinder API.

Every error carries the HTTP status the boundary answers with and a
human-readable message that ends up in the JSON body.
"""

from typing import Dict, List, Optional


class PawFinderError(Exception):
    """Base exception for the PawFinder service."""
    status_code = 500

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class NotFoundError(PawFinderError):
    """Unknown listing or account id."""
    status_code = 404


class InputValidationError(PawFinderError):
    """Malformed or incomplete input; `errors` maps field names to messages."""
    status_code = 400


class UnauthorizedError(PawFinderError):
    """No valid session is attached to the request."""
    status_code = 401


class ForbiddenError(PawFinderError):
    """Authenticated, but the account is not an administrator."""
    status_code = 403


class DuplicateUsernameError(PawFinderError):
    """An account with this username already exists."""
    status_code = 409


class TooManyAttemptsError(PawFinderError):
    """Too many failed logins from one client."""
    status_code = 429


class UploadRejectedError(PawFinderError):
    """Uploaded file has the wrong type, is too large, or too many were sent."""
    status_code = 400


class InternalError(PawFinderError):
    """Unexpected store fault."""
    status_code = 500
