class AccountSecurityError(Exception):
    """
    Base for every error the security core raises.
    `status_code` and `payload()` are what the Flask error handler renders.
    """
    status_code = 400
    message = "Request failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def payload(self) -> dict:
        return {"error": self.message}


class ValidationError(AccountSecurityError):
    status_code = 400
    message = "Invalid input"

    def __init__(self, message: str = None, details=None):
        super().__init__(message)
        self.details = list(details or [])

    def payload(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(AccountSecurityError):
    status_code = 404
    message = "Not found"


class AuthenticationFailed(AccountSecurityError):
    status_code = 401
    message = "Invalid credentials"


class VerificationFailed(AccountSecurityError):
    status_code = 401
    message = "Unable to verify your identity with the answers provided"


class LockedOut(AccountSecurityError):
    status_code = 429
    message = "Account temporarily locked. Try again later."

    def __init__(self, remaining_minutes: int, lockout_count: int, message: str = None):
        super().__init__(message)
        self.remaining_minutes = remaining_minutes
        self.lockout_count = lockout_count

    def payload(self) -> dict:
        return {
            "error": self.message,
            "remaining_minutes": self.remaining_minutes,
            "lockout_count": self.lockout_count,
        }


class RateLimited(AccountSecurityError):
    status_code = 429
    message = "Too many requests. Slow down."

    def __init__(self, retry_after: int, message: str = None):
        super().__init__(message)
        self.retry_after = retry_after

    def payload(self) -> dict:
        return {"error": self.message, "retry_after_seconds": self.retry_after}


class StorageError(AccountSecurityError):
    status_code = 503
    message = "Storage temporarily unavailable. Retry later."


class CredentialUpdateError(StorageError):
    status_code = 502
    message = "Password could not be updated. Retry later."
