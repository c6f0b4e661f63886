"""
Enrollment service implementation.

Application lifecycle:

    PaymentPending --pay--> PaymentCompleted --approve--> Approved
          |                       |   \\--reject--> Rejected --refund--> Rejected
          \\--cancel--> Cancelled  \\--refund--> Cancelled

Approval creates the Student row in the chosen classroom.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Settings
from shared.models import AuthenticatedUser, UserRole
from shared.orm import utcnow

from modules.accounts.entities import Account
from modules.accounts.repository import AccountRepository
from modules.auth.exceptions import InsufficientPermissionsError, UserNotFoundError

from .entities import (
    Application,
    ApplicationStatus,
    Child,
    Classroom,
    Payment,
    PaymentType,
    Student,
)
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
from .interfaces import IEnrollmentService
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
from .repository import (
    ApplicationRepository,
    ChildRepository,
    ClassroomRepository,
    PaymentRepository,
    StudentRepository,
)

logger = logging.getLogger(__name__)

REVIEWER_ROLES = (UserRole.STAFF, UserRole.ADMIN)


class EnrollmentService(IEnrollmentService):
    """All repositories share the request's session."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self._settings = settings
        self._accounts = AccountRepository(session)
        self._children = ChildRepository(session)
        self._classrooms = ClassroomRepository(session)
        self._students = StudentRepository(session)
        self._applications = ApplicationRepository(session)
        self._payments = PaymentRepository(session)

    async def _caller(self, user: AuthenticatedUser) -> Account:
        account = await self._accounts.get_by_uid(user.id)
        if account is None:
            raise UserNotFoundError(user.id)
        return account

    async def _owned_child(self, account: Account, child_id: uuid.UUID) -> Child:
        child = await self._children.get_owned(child_id, account.id)
        if child is None:
            raise ChildNotFoundError(str(child_id))
        return child

    async def _application(self, application_id: uuid.UUID) -> Application:
        application = await self._applications.get_by_id(application_id)
        if application is None:
            raise ApplicationNotFoundError(str(application_id))
        return application

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    async def add_child(self, user: AuthenticatedUser, request: ChildCreate) -> ChildResponse:
        account = await self._caller(user)
        child = Child(
            parent_id=account.id,
            full_name=request.full_name.strip(),
            birthdate=request.birthdate,
            gender=request.gender,
            address=request.address,
            created_by=user.id,
            is_deleted=False,
        )
        await self._children.add(child)
        await self._children.save_changes()
        logger.info(f"Child {child.id} added by {user.id}")
        return ChildResponse.model_validate(child)

    async def list_children(self, user: AuthenticatedUser) -> list[ChildResponse]:
        account = await self._caller(user)
        children = await self._children.list_for_parent(account.id)
        return [ChildResponse.model_validate(c) for c in children]

    async def update_child(
        self, user: AuthenticatedUser, child_id: uuid.UUID, request: ChildUpdate
    ) -> ChildResponse:
        account = await self._caller(user)
        child = await self._owned_child(account, child_id)

        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(child, field, value)
        child.updated_by = user.id
        await self._children.update(child)
        await self._children.save_changes()
        return ChildResponse.model_validate(child)

    async def remove_child(self, user: AuthenticatedUser, child_id: uuid.UUID) -> bool:
        account = await self._caller(user)
        child = await self._owned_child(account, child_id)
        await self._children.delete(child, deleted_by=user.id)
        await self._children.save_changes()
        logger.info(f"Child {child_id} removed by {user.id}")
        return True

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def submit_application(
        self, user: AuthenticatedUser, request: ApplicationCreate
    ) -> ApplicationResponse:
        account = await self._caller(user)
        threshold = self._settings.enrollment_profile_threshold
        if not account.can_enroll(threshold):
            logger.info(
                f"Application rejected for {user.id}: completion "
                f"{account.profile_completion_percentage}%, verified={account.email_verified}"
            )
            raise EnrollmentNotAllowedError(account.profile_completion_percentage or 0, threshold)

        child = await self._owned_child(account, request.child_id)
        if await self._applications.has_open_application(child.id):
            raise DuplicateApplicationError(str(child.id))

        application = Application(
            child_id=child.id,
            created_by_id=account.id,
            student_name=child.full_name,
            birthdate=child.birthdate,
            gender=child.gender,
            address=child.address,
            grade=request.grade,
            reason=request.reason,
            status=ApplicationStatus.PAYMENT_PENDING,
            created_by=user.id,
            is_deleted=False,
        )
        await self._applications.add(application)
        await self._applications.save_changes()
        logger.info(f"Application {application.id} submitted for child {child.id}")
        return ApplicationResponse.model_validate(application)

    async def list_my_applications(self, user: AuthenticatedUser) -> list[ApplicationResponse]:
        account = await self._caller(user)
        applications = await self._applications.list_for_parent(account.id)
        return [ApplicationResponse.model_validate(a) for a in applications]

    async def cancel_application(
        self, user: AuthenticatedUser, application_id: uuid.UUID
    ) -> ApplicationResponse:
        account = await self._caller(user)
        application = await self._applications.get_owned(application_id, account.id)
        if application is None:
            raise ApplicationNotFoundError(str(application_id))
        if application.status != ApplicationStatus.PAYMENT_PENDING:
            raise InvalidApplicationStateError(str(application_id), application.status, "cancel")

        application.status = ApplicationStatus.CANCELLED
        application.updated_by = user.id
        await self._applications.update(application)
        await self._applications.save_changes()
        logger.info(f"Application {application_id} cancelled by {user.id}")
        return ApplicationResponse.model_validate(application)

    async def record_payment(
        self, user: AuthenticatedUser, application_id: uuid.UUID, request: PaymentCreate
    ) -> PaymentResponse:
        account = await self._caller(user)

        if request.type == PaymentType.REFUND:
            if user.role not in REVIEWER_ROLES:
                raise InsufficientPermissionsError(
                    [r.value for r in REVIEWER_ROLES],
                    user.role.value if user.role else "",
                )
            application = await self._application(application_id)
            # at most one refund, and only of money actually paid
            if not await self._payments.has_of_type(application.id, PaymentType.PAYMENT) or (
                await self._payments.has_of_type(application.id, PaymentType.REFUND)
            ):
                raise InvalidApplicationStateError(str(application_id), application.status, "refund")
            if application.status == ApplicationStatus.PAYMENT_COMPLETED:
                application.status = ApplicationStatus.CANCELLED
            elif application.status != ApplicationStatus.REJECTED:
                raise InvalidApplicationStateError(str(application_id), application.status, "refund")
        else:
            if user.role == UserRole.PARENT:
                application = await self._applications.get_owned(application_id, account.id)
                if application is None:
                    raise ApplicationNotFoundError(str(application_id))
            else:
                application = await self._application(application_id)
            if application.status != ApplicationStatus.PAYMENT_PENDING:
                raise InvalidApplicationStateError(str(application_id), application.status, "pay for")
            application.status = ApplicationStatus.PAYMENT_COMPLETED

        payment = Payment(
            application_id=application.id,
            made_by_id=account.id,
            type=request.type,
            amount=request.amount,
            txn_ref=request.txn_ref,
            order_info=request.order_info,
            bank_code=request.bank_code,
            card_type=request.card_type,
            response_code=request.response_code,
            pay_date=utcnow(),
            created_by=user.id,
            is_deleted=False,
        )
        application.updated_by = user.id

        await self._payments.begin_transaction()
        try:
            await self._payments.add(payment)
            await self._applications.update(application)
            await self._payments.save_changes()
            await self._payments.commit_transaction()
        except Exception:
            if self._payments.in_transaction:
                await self._payments.rollback_transaction()
            raise

        logger.info(
            f"{request.type.value} of {request.amount} recorded on application {application_id} "
            f"by {user.id}; status is now {application.status.value}"
        )
        return PaymentResponse(
            id=payment.id,
            application_id=application.id,
            type=payment.type,
            amount=payment.amount,
            txn_ref=payment.txn_ref,
            order_info=payment.order_info,
            response_code=payment.response_code,
            pay_date=payment.pay_date,
            application_status=application.status,
        )

    async def list_applications(
        self, page: int, page_size: int, status: Optional[ApplicationStatus] = None
    ) -> ApplicationListResponse:
        applications, total = await self._applications.list_paged(page, page_size, status)
        return ApplicationListResponse(
            items=[ApplicationResponse.model_validate(a) for a in applications],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def approve_application(
        self, user: AuthenticatedUser, application_id: uuid.UUID, classroom_id: uuid.UUID
    ) -> ApplicationResponse:
        application = await self._application(application_id)
        if application.status != ApplicationStatus.PAYMENT_COMPLETED:
            raise InvalidApplicationStateError(str(application_id), application.status, "approve")

        classroom = await self._classrooms.get_by_id(classroom_id)
        if classroom is None:
            raise ClassroomNotFoundError(str(classroom_id))
        if await self._students.count_in_classroom(classroom.id) >= classroom.capacity:
            raise ClassroomFullError(str(classroom.id), classroom.capacity)

        student = Student(
            child_id=application.child_id,
            parent_id=application.created_by_id,
            classroom_id=classroom.id,
            full_name=application.student_name,
            birthdate=application.birthdate,
            gender=application.gender,
            created_by=user.id,
            is_deleted=False,
        )
        application.status = ApplicationStatus.APPROVED
        application.updated_by = user.id

        await self._applications.begin_transaction()
        try:
            await self._students.add(student)
            await self._applications.update(application)
            await self._applications.save_changes()
            await self._applications.commit_transaction()
        except Exception:
            if self._applications.in_transaction:
                await self._applications.rollback_transaction()
            raise

        logger.info(f"Application {application_id} approved by {user.id}; student {student.id} placed in {classroom.name}")
        return ApplicationResponse.model_validate(application)

    async def reject_application(
        self, user: AuthenticatedUser, application_id: uuid.UUID, reason: str
    ) -> ApplicationResponse:
        application = await self._application(application_id)
        if application.status not in (ApplicationStatus.PAYMENT_PENDING, ApplicationStatus.PAYMENT_COMPLETED):
            raise InvalidApplicationStateError(str(application_id), application.status, "reject")

        application.status = ApplicationStatus.REJECTED
        application.reason = reason
        application.updated_by = user.id
        await self._applications.update(application)
        await self._applications.save_changes()
        logger.info(f"Application {application_id} rejected by {user.id}")
        return ApplicationResponse.model_validate(application)

    # ------------------------------------------------------------------
    # Classrooms and students
    # ------------------------------------------------------------------

    async def create_classroom(self, user: AuthenticatedUser, request: ClassroomCreate) -> ClassroomResponse:
        classroom = Classroom(
            name=request.name.strip(),
            capacity=request.capacity,
            created_by=user.id,
            is_deleted=False,
        )
        await self._classrooms.add(classroom)
        await self._classrooms.save_changes()
        logger.info(f"Classroom {classroom.name} created by {user.id}")
        return ClassroomResponse(id=classroom.id, name=classroom.name, capacity=classroom.capacity)

    async def list_classrooms(self) -> list[ClassroomResponse]:
        classrooms = await self._classrooms.list_by_name()
        return [
            ClassroomResponse(
                id=c.id,
                name=c.name,
                capacity=c.capacity,
                enrolled=await self._students.count_in_classroom(c.id),
            )
            for c in classrooms
        ]

    async def list_students(
        self, page: int, page_size: int, classroom_id: Optional[uuid.UUID] = None
    ) -> StudentListResponse:
        students, total = await self._students.list_paged(page, page_size, classroom_id)
        return StudentListResponse(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def get_student(self, student_id: uuid.UUID) -> StudentResponse:
        student = await self._students.get_by_id(student_id)
        if student is None:
            raise StudentNotFoundError(str(student_id))
        return StudentResponse.model_validate(student)

    async def remove_student(self, user: AuthenticatedUser, student_id: uuid.UUID) -> bool:
        if not await self._students.delete(student_id, deleted_by=user.id):
            raise StudentNotFoundError(str(student_id))
        await self._students.save_changes()
        logger.info(f"Student {student_id} removed by {user.id}")
        return True
