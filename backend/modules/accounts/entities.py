"""
Account entity.

One row per identity-provider user, created at registration and never
hard-deleted.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.models import UserRole
from shared.orm import AuditMixin, Base, utcnow

DEFAULT_COUNTRY = "United States"


class Account(AuditMixin, Base):
    __tablename__ = "accounts"

    uid: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    phone_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    first_name: Mapped[str] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(50))
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="user_role")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    profile_completion_percentage: Mapped[int] = mapped_column(Integer, default=0)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Address
    address_line1: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    address_line2: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), default=DEFAULT_COUNTRY, nullable=True)

    # Emergency contact
    emergency_contact_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    relationship_to_child: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    accepted_terms: Mapped[bool] = mapped_column(Boolean, default=False)
    terms_accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Staff
    job_title: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    employee_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Fixture accounts authenticate against a local hash
    is_seed_account: Mapped[bool] = mapped_column(Boolean, default=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def calculate_profile_completion(self) -> int:
        """
        Percentage of the 15 profile fields that are filled in.

        Twelve text fields count when non-blank; email verification, phone
        verification and accepted terms count when true.
        """
        text_fields = [
            self.first_name,
            self.last_name,
            self.email,
            self.phone_number,
            self.address_line1,
            self.city,
            self.state,
            self.postal_code,
            self.country,
            self.emergency_contact_name,
            self.emergency_contact_phone,
            self.relationship_to_child,
        ]
        flags = [self.email_verified, self.phone_verified, self.accepted_terms]

        total = len(text_fields) + len(flags)
        completed = sum(1 for value in text_fields if value and value.strip())
        completed += sum(1 for flag in flags if flag)

        return round(completed / total * 100)

    def refresh_profile_completion(self) -> int:
        self.profile_completion_percentage = self.calculate_profile_completion()
        return self.profile_completion_percentage

    def can_enroll(self, threshold: int) -> bool:
        """Parents may submit applications once active, verified and mostly complete."""
        return (
            self.role == UserRole.PARENT
            and bool(self.is_active)
            and bool(self.email_verified)
            and (self.profile_completion_percentage or 0) >= threshold
        )

    def record_login(self) -> None:
        self.last_login_at = utcnow()
