"""
Enrollment entities: children, classrooms, applications, payments, students.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.orm import AuditMixin, Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ApplicationStatus(str, PyEnum):
    PAYMENT_PENDING = "PaymentPending"
    PAYMENT_COMPLETED = "PaymentCompleted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


# A child may hold at most one application in these states
OPEN_APPLICATION_STATUSES = (
    ApplicationStatus.PAYMENT_PENDING,
    ApplicationStatus.PAYMENT_COMPLETED,
    ApplicationStatus.APPROVED,
)


class PaymentType(str, PyEnum):
    PAYMENT = "Payment"
    REFUND = "Refund"


class Classroom(AuditMixin, Base):
    __tablename__ = "classrooms"

    name: Mapped[str] = mapped_column(String(100))
    capacity: Mapped[int] = mapped_column(Integer)


class Child(AuditMixin, Base):
    __tablename__ = "children"

    parent_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("accounts.id"), index=True)
    full_name: Mapped[str] = mapped_column(String(100))
    birthdate: Mapped[date] = mapped_column(Date)
    gender: Mapped[str] = mapped_column(String(20))
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class Student(AuditMixin, Base):
    __tablename__ = "students"

    child_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("children.id"), nullable=True)
    parent_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("accounts.id"), index=True)
    classroom_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("classrooms.id"), nullable=True, index=True
    )
    full_name: Mapped[str] = mapped_column(String(100))
    birthdate: Mapped[date] = mapped_column(Date)
    gender: Mapped[str] = mapped_column(String(20))


class Application(AuditMixin, Base):
    __tablename__ = "applications"

    child_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("children.id"), index=True)
    created_by_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("accounts.id"), index=True)
    student_name: Mapped[str] = mapped_column(String(100))
    birthdate: Mapped[date] = mapped_column(Date)
    gender: Mapped[str] = mapped_column(String(20))
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    grade: Mapped[str] = mapped_column(String(50))
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, values_callable=_enum_values, name="application_status"),
        default=ApplicationStatus.PAYMENT_PENDING,
        index=True,
    )


class Payment(AuditMixin, Base):
    __tablename__ = "payments"

    application_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("applications.id"), index=True)
    made_by_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("accounts.id"))
    type: Mapped[PaymentType] = mapped_column(
        Enum(PaymentType, values_callable=_enum_values, name="payment_type")
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    txn_ref: Mapped[str] = mapped_column(String(100))
    order_info: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bank_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    card_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    response_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    pay_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
