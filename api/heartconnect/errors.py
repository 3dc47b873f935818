class ServiceError(Exception):
    """Base for failures the API reports to clients as ``{"message": ...}``."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(ServiceError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(ServiceError):
    status_code = 403
    default_message = "Unauthorized"


class Blocked(Forbidden):
    default_message = "Cannot swipe on this user"


class ProfileIncomplete(Forbidden):
    default_message = "Please complete your profile first"


class NotFound(ServiceError):
    status_code = 404
    default_message = "Not found"


class QuotaExceeded(ServiceError):
    status_code = 429
    default_message = "Daily swipe limit reached. Upgrade to Premium for unlimited swipes!"
