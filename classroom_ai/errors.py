"""
Error taxonomy for the analysis endpoints.

Every error a handler can raise derives from PortalError. Route functions
turn them into the JSON error body; all of them map to HTTP 500 because the
portal client only distinguishes success from failure.
"""


class PortalError(Exception):
    """Base class for errors surfaced to the caller."""
    http_status = 500


class ConfigurationError(PortalError):
    """Required API key or credential missing. Fatal at startup."""


class InvalidRequestError(PortalError):
    """Request body is missing required fields."""


class NotFoundError(PortalError):
    """Referenced assignment, submission, rubric or file is absent."""


class EmptyContentError(PortalError):
    """Nothing to analyze, e.g. text extraction produced no text."""


class UpstreamError(PortalError):
    """The generative AI provider did not produce a usable reply."""

    def __init__(self, message, status_code=None, body=""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamTransientError(UpstreamError):
    """Provider overloaded (HTTP 503) or the request never reached it."""


class UpstreamPermanentError(UpstreamError):
    """Any other non-success reply. Never retried."""


class RetriesExhaustedError(UpstreamError):
    """Every attempt ended in a transient failure."""

    def __init__(self, attempts, last_error):
        super().__init__(
            f"AI service unavailable after {attempts} attempts: {last_error}",
            status_code=getattr(last_error, 'status_code', None),
            body=getattr(last_error, 'body', ""),
        )
        self.attempts = attempts
        self.last_error = last_error


class UnparseableResponseError(UpstreamError):
    """The reply held no JSON object and the caller has no default for it."""


class PersistenceError(PortalError):
    """A write to the data store was rejected. Terminal, not retried."""
