"""Custom exceptions for the Teamup link updater."""


class LinkerError(Exception):
    """Base exception for the link updater."""

    pass


class ConfigError(LinkerError):
    """Raised when a required setting (API key, calendar id) is missing."""

    pass


# ============================================================================
# Normalization / resolution failures
# ============================================================================


class NormalizationError(LinkerError):
    """Raised when an event fragment cannot be turned into a descriptor."""

    pass


class MissingSubCalendar(NormalizationError):
    """Raised when the event has no sub-calendar. Callers skip the event."""

    pass


class MissingIdentifier(NormalizationError):
    """Raised when the event has no id."""

    pass


class MalformedIdentifier(NormalizationError):
    """Raised when the series id cannot be parsed from the event id."""

    pass


class UnresolvableRecurrence(NormalizationError):
    """Raised when a recurring event has no usable instance anchor."""

    pass


# ============================================================================
# Provider failures
# ============================================================================


class TeamupError(LinkerError):
    """Base exception for Teamup API errors."""

    kind = "error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_id: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_id = error_id


class TeamupAuthError(TeamupError):
    """Raised when Teamup rejects the API key (401/403)."""

    kind = "auth"


class TeamupNotFoundError(TeamupError):
    """Raised when the event or calendar does not exist (404)."""

    kind = "not_found"


class TeamupOverlapError(TeamupError):
    """Raised when the write conflicts with another event's schedule."""

    kind = "overlap"


class TeamupValidationError(TeamupError):
    """Raised for any other 4xx rejection of the payload."""

    kind = "validation"


class TeamupServerError(TeamupError):
    """Raised when Teamup answers with a 5xx status."""

    kind = "server"


class TeamupNetworkError(TeamupError):
    """Raised when the request never got a response (connect error, timeout)."""

    kind = "network"
