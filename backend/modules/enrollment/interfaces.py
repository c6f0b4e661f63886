"""
Enrollment module interface.
"""

import uuid
from typing import Protocol, Optional, runtime_checkable

from shared.models import AuthenticatedUser

from .entities import ApplicationStatus
from .models import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ChildCreate,
    ChildResponse,
    ChildUpdate,
    ClassroomCreate,
    ClassroomResponse,
    PaymentCreate,
    PaymentResponse,
    StudentListResponse,
    StudentResponse,
)


@runtime_checkable
class IEnrollmentService(Protocol):
    """
    Children, applications, payments, classrooms and students.

    Parent-facing operations only ever see the caller's own children and
    applications; anything else is reported as not found.
    """

    # Children
    async def add_child(self, user: AuthenticatedUser, request: ChildCreate) -> ChildResponse:
        ...

    async def list_children(self, user: AuthenticatedUser) -> list[ChildResponse]:
        ...

    async def update_child(
        self, user: AuthenticatedUser, child_id: uuid.UUID, request: ChildUpdate
    ) -> ChildResponse:
        ...

    async def remove_child(self, user: AuthenticatedUser, child_id: uuid.UUID) -> bool:
        ...

    # Applications
    async def submit_application(
        self, user: AuthenticatedUser, request: ApplicationCreate
    ) -> ApplicationResponse:
        """
        Raises:
            EnrollmentNotAllowedError: The parent cannot enroll yet.
            ChildNotFoundError: The child is not the caller's.
            DuplicateApplicationError: The child already has an open application.
        """
        ...

    async def list_my_applications(self, user: AuthenticatedUser) -> list[ApplicationResponse]:
        ...

    async def cancel_application(
        self, user: AuthenticatedUser, application_id: uuid.UUID
    ) -> ApplicationResponse:
        ...

    async def record_payment(
        self, user: AuthenticatedUser, application_id: uuid.UUID, request: PaymentCreate
    ) -> PaymentResponse:
        ...

    async def list_applications(
        self, page: int, page_size: int, status: Optional[ApplicationStatus] = None
    ) -> ApplicationListResponse:
        ...

    async def approve_application(
        self, user: AuthenticatedUser, application_id: uuid.UUID, classroom_id: uuid.UUID
    ) -> ApplicationResponse:
        """
        Raises:
            InvalidApplicationStateError: The application is not paid.
            ClassroomFullError: The classroom has no free seat.
        """
        ...

    async def reject_application(
        self, user: AuthenticatedUser, application_id: uuid.UUID, reason: str
    ) -> ApplicationResponse:
        ...

    # Classrooms and students
    async def create_classroom(self, user: AuthenticatedUser, request: ClassroomCreate) -> ClassroomResponse:
        ...

    async def list_classrooms(self) -> list[ClassroomResponse]:
        ...

    async def list_students(
        self, page: int, page_size: int, classroom_id: Optional[uuid.UUID] = None
    ) -> StudentListResponse:
        ...

    async def get_student(self, student_id: uuid.UUID) -> StudentResponse:
        ...

    async def remove_student(self, user: AuthenticatedUser, student_id: uuid.UUID) -> bool:
        ...
