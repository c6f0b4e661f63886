"""
Enrollment module exceptions.
"""

from shared.exceptions import AuthorizationError, ConflictError, NotFoundError

from .entities import ApplicationStatus


class ChildNotFoundError(NotFoundError):
    """Raised when a child doesn't exist or belongs to another parent."""

    def __init__(self, child_id: str):
        super().__init__(
            f"Child not found: {child_id}",
            code="CHILD_NOT_FOUND",
            details={"child_id": child_id},
        )


class ApplicationNotFoundError(NotFoundError):
    def __init__(self, application_id: str):
        super().__init__(
            f"Application not found: {application_id}",
            code="APPLICATION_NOT_FOUND",
            details={"application_id": application_id},
        )


class ClassroomNotFoundError(NotFoundError):
    def __init__(self, classroom_id: str):
        super().__init__(
            f"Classroom not found: {classroom_id}",
            code="CLASSROOM_NOT_FOUND",
            details={"classroom_id": classroom_id},
        )


class StudentNotFoundError(NotFoundError):
    def __init__(self, student_id: str):
        super().__init__(
            f"Student not found: {student_id}",
            code="STUDENT_NOT_FOUND",
            details={"student_id": student_id},
        )


class EnrollmentNotAllowedError(AuthorizationError):
    """Raised when a parent who cannot enroll yet submits an application."""

    def __init__(self, completion: int, threshold: int):
        super().__init__(
            "Complete your profile and verify your email before applying",
            code="ENROLLMENT_NOT_ALLOWED",
            details={"profile_completion_percentage": completion, "required": threshold},
        )


class DuplicateApplicationError(ConflictError):
    def __init__(self, child_id: str):
        super().__init__(
            "This child already has an open application",
            code="APPLICATION_EXISTS",
            details={"child_id": child_id},
        )


class InvalidApplicationStateError(ConflictError):
    def __init__(self, application_id: str, status: ApplicationStatus, action: str):
        super().__init__(
            f"Cannot {action} an application in status {status.value}",
            code="INVALID_APPLICATION_STATE",
            details={"application_id": application_id, "status": status.value},
        )


class ClassroomFullError(ConflictError):
    def __init__(self, classroom_id: str, capacity: int):
        super().__init__(
            "Classroom is at capacity",
            code="CLASSROOM_FULL",
            details={"classroom_id": classroom_id, "capacity": capacity},
        )
