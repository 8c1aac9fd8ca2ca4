"""Error taxonomy shared by the API, the service layer and the HTTP client."""


class FocusTrackError(Exception):
    """Base exception. ``status_code`` and ``code`` drive the JSON error payload."""

    status_code = 400
    code = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code


class NotAuthenticated(FocusTrackError):
    """No user identity supplied."""

    status_code = 401
    code = "not_authenticated"


class NotFound(FocusTrackError):
    """Session not found."""

    status_code = 404
    code = "not_found"


class AccessDenied(FocusTrackError):
    """Session belongs to another user."""

    status_code = 403
    code = "access_denied"


class StrategyMismatch(FocusTrackError):
    """Operation does not apply to this session's strategy."""

    status_code = 409
    code = "strategy_mismatch"


class UnsupportedOperation(StrategyMismatch):
    """Strategy has no such operation."""


class ValidationError(FocusTrackError):
    """Missing or malformed field."""

    status_code = 422
    code = "validation_error"


class InvalidTransition(FocusTrackError):
    """Session cannot move to the requested status."""

    status_code = 409
    code = "invalid_transition"


class ConfigurationError(Exception):
    """Raised when FOCUSTRACK_* settings are invalid."""


ERRORS_BY_CODE: dict[str, type[FocusTrackError]] = {
    cls.code: cls
    for cls in (
        NotAuthenticated,
        NotFound,
        AccessDenied,
        StrategyMismatch,
        ValidationError,
        InvalidTransition,
    )
}
