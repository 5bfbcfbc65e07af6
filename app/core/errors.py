"""
Error taxonomy for the profile generation service.

Every error carries the HTTP status the route layer responds with and a
short title used in the JSON error body. The raw message is surfaced to
the client as-is.
"""


class DoubleError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    title: str = "Internal Server Error"


class ProviderUnavailableError(DoubleError):
    """Requested (or default) AI provider is not registered."""

    title = "AI provider unavailable"


class ProviderError(DoubleError):
    """Upstream AI call failed or returned content we could not use."""

    title = "AI provider request failed"


class ValidationError(DoubleError):
    """A required input field is missing or malformed."""

    status_code = 400
    title = "Invalid request"


class NotFoundError(DoubleError):
    status_code = 404
    title = "Not found"


class PersistenceError(DoubleError):
    """Store or object storage operation failed."""

    title = "Storage operation failed"
