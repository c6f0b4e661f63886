"""
Enrollment data access, one repository per entity.
"""

import uuid
from typing import Optional

from shared.repository import BaseRepository

from .entities import (
    OPEN_APPLICATION_STATUSES,
    Application,
    ApplicationStatus,
    Child,
    Classroom,
    Payment,
    PaymentType,
    Student,
)


class ClassroomRepository(BaseRepository[Classroom]):
    model = Classroom

    async def list_by_name(self) -> list[Classroom]:
        return await self.fetch(self.query().order_by(Classroom.name))


class ChildRepository(BaseRepository[Child]):
    model = Child

    async def list_for_parent(self, parent_id: uuid.UUID) -> list[Child]:
        return await self.fetch(
            self.query().where(Child.parent_id == parent_id).order_by(Child.created_at)
        )

    async def get_owned(self, child_id: uuid.UUID, parent_id: uuid.UUID) -> Optional[Child]:
        return await self.find_single(Child.id == child_id, Child.parent_id == parent_id)


class StudentRepository(BaseRepository[Student]):
    model = Student

    async def count_in_classroom(self, classroom_id: uuid.UUID) -> int:
        return await self.count(Student.classroom_id == classroom_id)

    async def list_paged(
        self,
        page_number: int,
        page_size: int,
        classroom_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[Student], int]:
        return await self.get_paged(
            page_number,
            page_size,
            order_by=Student.full_name,
            filter=Student.classroom_id == classroom_id if classroom_id else None,
        )


class ApplicationRepository(BaseRepository[Application]):
    model = Application

    async def list_for_parent(self, parent_id: uuid.UUID) -> list[Application]:
        return await self.fetch(
            self.query()
            .where(Application.created_by_id == parent_id)
            .order_by(Application.created_at.desc())
        )

    async def get_owned(self, application_id: uuid.UUID, parent_id: uuid.UUID) -> Optional[Application]:
        return await self.find_single(
            Application.id == application_id,
            Application.created_by_id == parent_id,
        )

    async def has_open_application(self, child_id: uuid.UUID) -> bool:
        return await self.any(
            Application.child_id == child_id,
            Application.status.in_(OPEN_APPLICATION_STATUSES),
        )

    async def list_paged(
        self,
        page_number: int,
        page_size: int,
        status: Optional[ApplicationStatus] = None,
    ) -> tuple[list[Application], int]:
        return await self.get_paged(
            page_number,
            page_size,
            filter=Application.status == status if status else None,
        )


class PaymentRepository(BaseRepository[Payment]):
    model = Payment

    async def list_for_application(self, application_id: uuid.UUID) -> list[Payment]:
        return await self.fetch(
            self.query().where(Payment.application_id == application_id).order_by(Payment.created_at)
        )

    async def has_of_type(self, application_id: uuid.UUID, payment_type: PaymentType) -> bool:
        return await self.any(Payment.application_id == application_id, Payment.type == payment_type)
