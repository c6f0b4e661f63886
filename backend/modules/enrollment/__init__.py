"""
Enrollment module.

Children, classrooms, enrollment applications, payments and students,
all persisted through the generic soft-delete repository.

Public API:
- IEnrollmentService: Interface for enrollment operations
- ApplicationStatus / PaymentType: Lifecycle enums
- Enrollment exceptions: EnrollmentNotAllowedError, ClassroomFullError, etc.
"""

from .entities import ApplicationStatus, PaymentType
from .interfaces import IEnrollmentService
from .exceptions import (
    ApplicationNotFoundError,
    ChildNotFoundError,
    ClassroomFullError,
    ClassroomNotFoundError,
    DuplicateApplicationError,
    EnrollmentNotAllowedError,
    InvalidApplicationStateError,
    StudentNotFoundError,
)

__all__ = [
    "IEnrollmentService",
    "ApplicationStatus",
    "PaymentType",
    "ApplicationNotFoundError",
    "ChildNotFoundError",
    "ClassroomFullError",
    "ClassroomNotFoundError",
    "DuplicateApplicationError",
    "EnrollmentNotAllowedError",
    "InvalidApplicationStateError",
    "StudentNotFoundError",
]
