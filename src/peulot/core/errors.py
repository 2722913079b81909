"""Error taxonomy shared by the store, generation, and API layers.

Each error carries a user-facing message and optional details. The API
layer maps ``status_code`` straight onto the HTTP response, so raising
the right class is all a caller needs to do.
"""


class PeulotError(Exception):
    """Base class for all expected, user-reportable failures."""

    status_code: int = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(PeulotError):
    """Malformed or out-of-range input. Raised before any side effect."""

    status_code = 400


class NotFoundError(PeulotError):
    """A referenced id does not exist."""

    status_code = 404


class GenerationError(PeulotError):
    """The LLM call failed, returned nothing, or returned the wrong shape."""

    status_code = 500


class GenerationTimeoutError(GenerationError):
    """The LLM call did not finish within the configured timeout."""

    status_code = 504


class ExternalServiceError(PeulotError):
    """Google Docs/Drive unreachable, unauthorized, or missing a resource."""

    status_code = 500
