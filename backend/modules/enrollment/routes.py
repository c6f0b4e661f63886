"""
Enrollment API endpoints.

Parents manage their children and applications; staff and admins review
applications and manage classrooms and students.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_enrollment_service
from api.middleware.auth import require_roles
from modules.auth.models import SuccessResponse
from shared.models import AuthenticatedUser, UserRole

from .entities import ApplicationStatus
from .interfaces import IEnrollmentService
from .models import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApproveApplicationRequest,
    ChildCreate,
    ChildResponse,
    ChildUpdate,
    ClassroomCreate,
    ClassroomResponse,
    PaymentCreate,
    PaymentResponse,
    RejectApplicationRequest,
    StudentListResponse,
    StudentResponse,
)

router = APIRouter()

parent_only = require_roles(UserRole.PARENT)
reviewers = require_roles(UserRole.STAFF, UserRole.ADMIN)
staff_and_teachers = require_roles(UserRole.STAFF, UserRole.ADMIN, UserRole.TEACHER)
payers = require_roles(UserRole.PARENT, UserRole.STAFF, UserRole.ADMIN)


# ----------------------------------------------------------------------
# Children (parents)
# ----------------------------------------------------------------------


@router.post("/children", response_model=ChildResponse, status_code=201)
async def add_child(
    request: ChildCreate,
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ChildResponse:
    return await service.add_child(user, request)


@router.get("/children", response_model=list[ChildResponse])
async def list_children(
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> list[ChildResponse]:
    return await service.list_children(user)


@router.put("/children/{child_id}", response_model=ChildResponse)
async def update_child(
    child_id: uuid.UUID,
    request: ChildUpdate,
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ChildResponse:
    return await service.update_child(user, child_id, request)


@router.delete("/children/{child_id}", response_model=SuccessResponse)
async def remove_child(
    child_id: uuid.UUID,
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> SuccessResponse:
    await service.remove_child(user, child_id)
    return SuccessResponse(message="Child removed")


# ----------------------------------------------------------------------
# Applications
# ----------------------------------------------------------------------


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
async def submit_application(
    request: ApplicationCreate,
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ApplicationResponse:
    """
    Submit an enrollment application for one of the caller's children.

    The caller must be eligible to enroll (active, verified email and a
    sufficiently complete profile).
    """
    return await service.submit_application(user, request)


@router.get("/applications/mine", response_model=list[ApplicationResponse])
async def list_my_applications(
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> list[ApplicationResponse]:
    return await service.list_my_applications(user)


@router.post("/applications/{application_id}/cancel", response_model=ApplicationResponse)
async def cancel_application(
    application_id: uuid.UUID,
    user: AuthenticatedUser = Depends(parent_only),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ApplicationResponse:
    return await service.cancel_application(user, application_id)


@router.post("/applications/{application_id}/payments", response_model=PaymentResponse, status_code=201)
async def record_payment(
    application_id: uuid.UUID,
    request: PaymentCreate,
    user: AuthenticatedUser = Depends(payers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> PaymentResponse:
    """Record a payment (parents and staff) or a refund (staff and admins only)."""
    return await service.record_payment(user, application_id, request)


@router.get("/applications", response_model=ApplicationListResponse)
async def list_applications(
    page: int = Query(default=1, description="Page number (1-indexed)"),
    page_size: int = Query(default=20, description="Items per page"),
    status: Optional[ApplicationStatus] = Query(default=None, description="Filter by status"),
    user: AuthenticatedUser = Depends(reviewers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ApplicationListResponse:
    return await service.list_applications(page, page_size, status)


@router.post("/applications/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: uuid.UUID,
    request: ApproveApplicationRequest,
    user: AuthenticatedUser = Depends(reviewers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ApplicationResponse:
    return await service.approve_application(user, application_id, request.classroom_id)


@router.post("/applications/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: uuid.UUID,
    request: RejectApplicationRequest,
    user: AuthenticatedUser = Depends(reviewers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ApplicationResponse:
    return await service.reject_application(user, application_id, request.reason)


# ----------------------------------------------------------------------
# Classrooms and students
# ----------------------------------------------------------------------


@router.post("/classrooms", response_model=ClassroomResponse, status_code=201)
async def create_classroom(
    request: ClassroomCreate,
    user: AuthenticatedUser = Depends(reviewers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> ClassroomResponse:
    return await service.create_classroom(user, request)


@router.get("/classrooms", response_model=list[ClassroomResponse])
async def list_classrooms(
    user: AuthenticatedUser = Depends(staff_and_teachers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> list[ClassroomResponse]:
    return await service.list_classrooms()


@router.get("/students", response_model=StudentListResponse)
async def list_students(
    page: int = Query(default=1, description="Page number (1-indexed)"),
    page_size: int = Query(default=20, description="Items per page"),
    classroom_id: Optional[uuid.UUID] = Query(default=None),
    user: AuthenticatedUser = Depends(staff_and_teachers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> StudentListResponse:
    return await service.list_students(page, page_size, classroom_id)


@router.get("/students/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: uuid.UUID,
    user: AuthenticatedUser = Depends(staff_and_teachers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> StudentResponse:
    return await service.get_student(student_id)


@router.delete("/students/{student_id}", response_model=SuccessResponse)
async def remove_student(
    student_id: uuid.UUID,
    user: AuthenticatedUser = Depends(reviewers),
    service: IEnrollmentService = Depends(get_enrollment_service),
) -> SuccessResponse:
    await service.remove_student(user, student_id)
    return SuccessResponse(message="Student removed")
