"""
Enrollment module data models.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from .entities import ApplicationStatus, PaymentType


class ChildCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    birthdate: date
    gender: str = Field(..., min_length=1, max_length=20)
    address: Optional[str] = Field(None, max_length=255)


class ChildUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    birthdate: Optional[date] = None
    gender: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = Field(None, max_length=255)


class ChildResponse(BaseModel):
    id: uuid.UUID
    full_name: str
    birthdate: date
    gender: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClassroomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(..., ge=1, le=100)


class ClassroomResponse(BaseModel):
    id: uuid.UUID
    name: str
    capacity: int
    enrolled: int = 0


class ApplicationCreate(BaseModel):
    child_id: uuid.UUID
    grade: str = Field(..., min_length=1, max_length=50)
    reason: Optional[str] = Field(None, max_length=2000)


class ApplicationResponse(BaseModel):
    id: uuid.UUID
    child_id: uuid.UUID
    student_name: str
    birthdate: date
    gender: str
    address: Optional[str] = None
    grade: str
    reason: Optional[str] = None
    status: ApplicationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ApplicationListResponse(BaseModel):
    items: list[ApplicationResponse]
    total: int
    page: int
    page_size: int


class ApproveApplicationRequest(BaseModel):
    classroom_id: uuid.UUID


class RejectApplicationRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class PaymentCreate(BaseModel):
    type: PaymentType = PaymentType.PAYMENT
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    txn_ref: str = Field(..., min_length=1, max_length=100)
    order_info: Optional[str] = Field(None, max_length=255)
    bank_code: Optional[str] = Field(None, max_length=20)
    card_type: Optional[str] = Field(None, max_length=20)
    response_code: Optional[str] = Field(None, max_length=10)


class PaymentResponse(BaseModel):
    id: uuid.UUID
    application_id: uuid.UUID
    type: PaymentType
    amount: Decimal
    txn_ref: str
    order_info: Optional[str] = None
    response_code: Optional[str] = None
    pay_date: Optional[datetime] = None
    application_status: ApplicationStatus


class StudentResponse(BaseModel):
    id: uuid.UUID
    child_id: Optional[uuid.UUID] = None
    classroom_id: Optional[uuid.UUID] = None
    full_name: str
    birthdate: date
    gender: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StudentListResponse(BaseModel):
    items: list[StudentResponse]
    total: int
    page: int
    page_size: int
