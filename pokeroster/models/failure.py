"""
Failure taxonomy and response envelope.

Every failure that crosses a component boundary is one of four kinds:

- NotFound: the operation targets a team or creature absent from its store
- InvalidArgument: malformed input (mismatched reorder set, non-positive ids)
- Conflict: reserved; replace-on-conflict writes absorb would-be conflicts
- StoreFailure: the underlying transaction could not commit

Stores raise these directly. The HTTP layer converts them into an
`ApiResponse` carrying a `FailureDetail`.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORE_FAILURE = "store_failure"
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel):
    """
    Response envelope for failures surfaced to the presentation layer.

    Successful endpoints return their own response models; failures are
    always wrapped so the client can display the message as-is.
    """

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    failure: FailureDetail = Field(
        ...,
        description="Failure details",
    )

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse":
        """Create a known failure response."""
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )

    @classmethod
    def unknown_failure(cls, detail: str | None = None) -> "ApiResponse":
        """Create an unknown failure response for errors nothing classified."""
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="The operation failed for an unknown reason. Please retry.",
                detail=detail,
                suggestion="If this persists, please report the issue.",
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class NotFoundError(KnownError):
    """Raised when a team, member or creature does not exist in its store."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=message,
            detail=detail,
            status_code=404,
        )


class InvalidArgumentError(KnownError):
    """Raised for malformed requests. State is never modified."""

    def __init__(self, message: str, detail: str | None = None, suggestion: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_ARGUMENT,
            message=message,
            detail=detail,
            suggestion=suggestion,
            status_code=400,
        )


class ConflictError(KnownError):
    """
    Raised when a write collides with existing data.

    Not raised by the current stores: catalog writes replace on conflict.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.CONFLICT,
            message=message,
            detail=detail,
            status_code=409,
        )


class StoreFailureError(KnownError):
    """
    Raised when a unit of work could not commit.

    Fatal to the operation, not to the process: the store stays usable.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.STORE_FAILURE,
            message=message,
            detail=detail,
            suggestion="Retry the operation. If this persists, check the database.",
            status_code=503,
        )
