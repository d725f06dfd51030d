"""
Capacity service error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer renders it with. Validation and not-found errors are client
recoverable; ``InternalError`` wraps unexpected storage failures.
"""
from typing import Optional


class CapacityServiceError(Exception):
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(CapacityServiceError):
    code = "VALIDATION_ERROR"
    status_code = 400


class MissingFieldsError(ValidationError):
    code = "MISSING_FIELDS"

    def __init__(self, fields) -> None:
        super().__init__(f"Missing required fields: {', '.join(fields)}")
        self.fields = list(fields)


class InvalidRangeError(ValidationError):
    code = "INVALID_RANGE"


class InvalidAvailabilityError(ValidationError):
    code = "INVALID_AVAILABILITY"


class InvalidLeavesError(ValidationError):
    code = "INVALID_LEAVES"


class InvalidPayloadError(ValidationError):
    code = "INVALID_PAYLOAD"


class InvalidStatusError(ValidationError):
    code = "INVALID_STATUS"


class InvalidWeekError(ValidationError):
    code = "INVALID_WEEK"


class NotFoundError(CapacityServiceError):
    code = "NOT_FOUND"
    status_code = 404


class IterationNotFoundError(NotFoundError):
    code = "ITERATION_NOT_FOUND"

    def __init__(self, iteration_id: str) -> None:
        super().__init__(f"Iteration {iteration_id} not found")
        self.iteration_id = iteration_id


class MemberNotFoundError(NotFoundError):
    code = "MEMBER_NOT_FOUND"

    def __init__(self, member_id: str) -> None:
        super().__init__(f"Member {member_id} not found")
        self.member_id = member_id


class TeamNotFoundError(NotFoundError):
    code = "TEAM_NOT_FOUND"

    def __init__(self, team_id: str) -> None:
        super().__init__(f"Team {team_id} not found")
        self.team_id = team_id


class AccessDeniedError(CapacityServiceError):
    code = "ACCESS_DENIED"
    status_code = 403

    def __init__(self, project_id: str) -> None:
        super().__init__("Access denied")
        self.project_id = project_id


class ConflictError(CapacityServiceError):
    code = "CONFLICT"
    status_code = 409


class InternalError(CapacityServiceError):
    code = "INTERNAL_ERROR"
    status_code = 500
