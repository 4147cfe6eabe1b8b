"""Domain errors raised by the account service.

Each error carries the HTTP status and the human-readable reason that is safe
to return to the caller. ``InternalError`` carries a generic message only;
the underlying detail goes to the log.
"""


class AuthError(Exception):
    status_code: int = 400
    message: str = "Request failed"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Conflict(AuthError):
    message = "User already exists"


class NotFound(AuthError):
    message = "User not found"


class AccountNotFound(NotFound):
    """Token was valid but the account behind it is gone."""
    status_code = 404


class InvalidCredentials(AuthError):
    message = "Invalid credentials"


class InvalidCode(AuthError):
    message = "Invalid OTP"


class Expired(AuthError):
    message = "OTP expired"


class InvalidOrExpired(AuthError):
    message = "Invalid or expired OTP"


class Unverified(AuthError):
    status_code = 403
    message = "Account not verified"


class Unauthorized(AuthError):
    status_code = 401
    message = "Not authenticated"


class InvalidToken(AuthError):
    status_code = 403
    message = "Could not validate credentials"


class InternalError(AuthError):
    status_code = 500
    message = "Internal server error"


class NotificationError(RuntimeError):
    """Raised by notifiers when a message could not be delivered."""
