"""근무 가능 시간 및 예약 모델.

Availability and Booking models used to compute a member's free time.

Tables:
    - availability: 주간 근무 시간 규칙 (Weekly working-hour rules)
    - bookings: 예약 (Bookings; accepted and pending ones block time)
"""

import enum
import uuid
from datetime import datetime, time, timezone

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teamhub.database import Base


class BookingStatus(str, enum.Enum):
    """예약 상태 — Booking status."""

    ACCEPTED = "ACCEPTED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class Availability(Base):
    """근무 시간 규칙 — 지정 요일의 시작/종료 시각 (사용자 시간대 기준).

    Working-hour rule: start/end wall-clock time on the given weekdays,
    interpreted in the owning user's time zone.

    Attributes:
        days: 요일 목록 (Weekdays, 0=Sunday .. 6=Saturday)
        start_time: 시작 시각 (Start wall-clock time)
        end_time: 종료 시각 (End wall-clock time)
    """

    __tablename__ = "availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    days: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(), nullable=False)

    user = relationship("User", back_populates="availability")


class Booking(Base):
    """예약 모델 — 사용자의 일정을 차지하는 예약.

    Booking model. ACCEPTED and PENDING bookings count as busy time.
    """

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"), default=BookingStatus.ACCEPTED, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="bookings")
