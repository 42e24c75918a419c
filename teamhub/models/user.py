"""사용자 관련 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definitions.

Tables:
    - users: 사용자 계정 (User accounts with plan tier)
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teamhub.database import Base


class UserPlan(str, enum.Enum):
    """사용자 요금제 — User plan tier."""

    FREE = "FREE"
    TRIAL = "TRIAL"
    PRO = "PRO"


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — System user account information.
    A user may belong to any number of teams through memberships.
    Users created by an invitation have only an email until they sign up.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        email: 이메일 (Email address, globally unique)
        username: 공개 사용자명 (Public username, optional until signup)
        name: 표시 이름 (Display name, optional)
        plan: 요금제 (Plan tier: FREE, TRIAL, PRO)
        time_zone: IANA 시간대 이름 (IANA time zone used for availability)
        invited_to: 초대한 팀 ID (Team that provisioned this user by invitation)
        stripe_customer_id: Stripe 고객 ID (Customer paying their own subscription)
        email_verified: 이메일 인증 여부 (Email verification status)

    Relationships:
        memberships: 팀 멤버십 목록 (Team memberships, cascade delete)
        availability: 근무 가능 시간 규칙 (Weekly working-hour rules)
        bookings: 예약 목록 (Bookings that count as busy time)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 이메일 — Email address (전역 고유, globally unique)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # 사용자명 — Public username (가입 전에는 없음, absent until signup)
    username: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan: Mapped[UserPlan] = mapped_column(
        Enum(UserPlan, name="user_plan"), default=UserPlan.TRIAL, nullable=False
    )
    time_zone: Mapped[str] = mapped_column(String(64), default="Europe/London", nullable=False)
    # 초대 팀 — 팀 삭제 시 NULL (Set to NULL when the inviting team is deleted)
    invited_to: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")
    availability = relationship("Availability", back_populates="user", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan")
