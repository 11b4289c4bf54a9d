"""
Error taxonomy shared by the report lifecycle, auth and background integrations.

Errors raised for user input carry the HTTP status the routers answer with.
Errors from background work (notifications, ban-list sync) are only ever logged.
"""


class ReportServerError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(ReportServerError):
    status_code = 400


class InvalidActionError(ValidationError):
    pass


class AuthError(ReportServerError):
    status_code = 401


class NotFoundError(ReportServerError):
    status_code = 404


class RateLimitExceeded(ReportServerError):
    status_code = 429


class ConfigurationError(ReportServerError):
    pass


class NotificationError(ReportServerError):
    pass


class ExternalSyncError(ReportServerError):
    pass
