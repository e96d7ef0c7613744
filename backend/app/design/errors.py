"""Error taxonomy for the design workflow.

Every failure the workflow can report to a caller is a ``DesignServiceError``
subclass with a stable ``ErrorCode``. The API layer renders them verbatim and
the HTTP status lives on the class.
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    # Selection validation
    EMPTY_SELECTIONS = "EMPTY_SELECTIONS"
    UNKNOWN_MATERIAL_KEY = "UNKNOWN_MATERIAL_KEY"
    INVALID_COLOR = "INVALID_COLOR"
    INVALID_FINISH = "INVALID_FINISH"
    INVALID_PATTERN = "INVALID_PATTERN"
    REJECTION_REASON_REQUIRED = "REJECTION_REASON_REQUIRED"

    # Submission gate
    MISSING_BODY_PAINT = "MISSING_BODY_PAINT"
    MISSING_GLASS = "MISSING_GLASS"
    GLASS_PATTERN_NOT_NONE = "GLASS_PATTERN_NOT_NONE"

    # Lifecycle
    ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
    APPROVED_IS_IMMUTABLE = "APPROVED_IS_IMMUTABLE"
    NOT_SUBMITTED = "NOT_SUBMITTED"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Access
    NOT_FOUND = "NOT_FOUND"
    ADMIN_UNAUTHORIZED = "ADMIN_UNAUTHORIZED"

    # Store
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"


class ErrorIssue(BaseModel):
    """A single finding inside a validation failure."""

    code: ErrorCode
    message: str
    material_key: str | None = None


class DesignServiceError(Exception):
    status_code: int = 400

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def issues(self) -> list[ErrorIssue]:
        return []

    def to_payload(self) -> dict:
        payload: dict = {"error": self.code.value, "message": self.message}
        if self.issues:
            payload["issues"] = [
                issue.model_dump(mode="json", exclude_none=True) for issue in self.issues
            ]
        return payload


class SelectionValidationError(DesignServiceError):
    """Client sent malformed or out-of-catalog data. Carries every issue found."""

    status_code = 400

    def __init__(self, issues: list[ErrorIssue]) -> None:
        if not issues:
            raise ValueError("SelectionValidationError needs at least one issue")
        self._issues = list(issues)
        first = self._issues[0]
        message = first.message
        if len(self._issues) > 1:
            message = f"{message} (and {len(self._issues) - 1} more issue(s))"
        super().__init__(first.code, message)

    @property
    def issues(self) -> list[ErrorIssue]:
        return list(self._issues)

    @property
    def codes(self) -> list[ErrorCode]:
        return [issue.code for issue in self._issues]


class SubmissionError(DesignServiceError):
    status_code = 400


class StateError(DesignServiceError):
    status_code = 409


class NotFoundError(DesignServiceError):
    status_code = 404

    def __init__(self, message: str = "design not found") -> None:
        super().__init__(ErrorCode.NOT_FOUND, message)


class AdminUnauthorizedError(DesignServiceError):
    status_code = 401

    def __init__(self, message: str = "admin authorization failed") -> None:
        super().__init__(ErrorCode.ADMIN_UNAUTHORIZED, message)


class AlreadyExistsError(DesignServiceError):
    status_code = 409
