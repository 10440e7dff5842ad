"""Domain error taxonomy.

Every error the services raise derives from PromptForgeError and carries a
stable ``code`` plus the HTTP status the API layer answers with. The
exception handler in main.py renders them as ``{"error": code, "message": ...}``
so clients never have to pattern-match transport errors.
"""
from typing import Any, Optional


class PromptForgeError(Exception):
    """Base class for classified domain errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        if code:
            self.code = code
        self.message = message or self.code
        super().__init__(self.message)

    def extra(self) -> dict[str, Any]:
        """Additional fields merged into the error payload."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.extra()}


# --- Authentication / session ---

class SessionExpiredError(PromptForgeError):
    status_code = 401
    code = "SESSION_EXPIRED"


# --- Authorization ---

class AuthorizationError(PromptForgeError):
    """Access denied. The code names the exact precondition that failed."""
    status_code = 403
    code = "FORBIDDEN"


class SelfShareError(AuthorizationError):
    code = "SELF_SHARE"


class NotPromptOwnerError(AuthorizationError):
    code = "NOT_PROMPT_OWNER"


class UnauthorizedShareModificationError(AuthorizationError):
    """Raised with UNAUTHORIZED_UPDATE or UNAUTHORIZED_DELETE."""

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(message, code=f"UNAUTHORIZED_{operation}")
        self.operation = operation


class PromptAccessDeniedError(AuthorizationError):
    code = "PROMPT_ACCESS_DENIED"


# --- Not found ---

class NotFoundError(PromptForgeError):
    status_code = 404
    code = "NOT_FOUND"


class PromptNotFoundError(NotFoundError):
    code = "PROMPT_NOT_FOUND"


class VersionNotFoundError(NotFoundError):
    code = "VERSION_NOT_FOUND"


class ShareNotFoundError(NotFoundError):
    code = "SHARE_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"


# --- Conflicts ---

class EditConflictError(PromptForgeError):
    """The prompt changed on the server since the editor loaded it."""
    status_code = 409
    code = "EDIT_CONFLICT"

    def __init__(self, server_updated_at=None, message: Optional[str] = None):
        super().__init__(message or "Prompt was modified by someone else since it was loaded")
        self.server_updated_at = server_updated_at

    def extra(self) -> dict[str, Any]:
        value = self.server_updated_at
        return {"serverUpdatedAt": value.isoformat() if value is not None else None}


class DuplicateVersionError(PromptForgeError):
    status_code = 409
    code = "VERSION_EXISTS"


class DuplicateShareError(PromptForgeError):
    status_code = 409
    code = "SHARE_EXISTS"


class DuplicateProfileError(PromptForgeError):
    status_code = 409
    code = "PROFILE_EXISTS"


# --- Validation ---

class DomainValidationError(PromptForgeError):
    """Field-level validation failure raised outside request parsing."""
    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, constraint: str, *, code: Optional[str] = None):
        super().__init__(f"{field}: {constraint}", code=code)
        self.field = field
        self.constraint = constraint

    def extra(self) -> dict[str, Any]:
        return {"field": self.field, "constraint": self.constraint}


class CurrentVersionDeleteError(DomainValidationError):
    def __init__(self, semver: str):
        super().__init__(
            "versionIds", f"current version {semver} cannot be deleted",
            code="CURRENT_VERSION_DELETE",
        )
        self.semver = semver


class PermissionUpdateOnPrivatePromptError(DomainValidationError):
    def __init__(self):
        super().__init__(
            "publicPermission", "public permission only applies to SHARED prompts",
            code="PERMISSION_UPDATE_ON_PRIVATE_PROMPT",
        )


class ImportParseError(PromptForgeError):
    status_code = 422

    def __init__(self, code: str, message: str, field: Optional[str] = None):
        super().__init__(message, code=code)
        self.field = field

    def extra(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


# --- External service (analysis) ---

class AnalysisTimeoutError(PromptForgeError):
    status_code = 504
    code = "ANALYSIS_TIMEOUT"


class RateLimitError(PromptForgeError):
    """Analysis quota exhausted for one of the two windows."""
    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, retry_after: int, reason: str, message: Optional[str] = None):
        super().__init__(message or f"Analysis quota exceeded ({reason}), retry in {retry_after}s")
        self.retry_after = retry_after
        self.reason = reason

    def extra(self) -> dict[str, Any]:
        return {"retryAfter": self.retry_after, "reason": self.reason}


class AnalysisFailedError(PromptForgeError):
    status_code = 502
    code = "ANALYSIS_FAILED"


class AnalysisConfigError(PromptForgeError):
    status_code = 503
    code = "ANALYSIS_UNAVAILABLE"


def classify_analysis_error(error: BaseException) -> dict[str, Any]:
    """Map any analysis failure to TIMEOUT, RATE_LIMIT or GENERIC."""
    if isinstance(error, AnalysisTimeoutError):
        return {"type": "TIMEOUT"}
    if isinstance(error, RateLimitError):
        return {"type": "RATE_LIMIT", "retry_after": error.retry_after, "reason": error.reason}
    message = getattr(error, "message", None) or str(error)
    return {"type": "GENERIC", "message": message}
