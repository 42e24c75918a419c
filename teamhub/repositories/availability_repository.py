"""근무 가능 시간 레포지토리 — 근무 규칙 및 구간 내 예약 조회.

Availability Repository — Working-hour rules and bookings overlapping a range.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.models.availability import Availability, Booking, BookingStatus
from teamhub.repositories.base import BaseRepository

# 바쁜 시간으로 간주되는 예약 상태 — Booking states that block time
BUSY_STATUSES: tuple[BookingStatus, ...] = (BookingStatus.ACCEPTED, BookingStatus.PENDING)


class AvailabilityRepository(BaseRepository[Availability]):
    """근무 규칙과 예약 테이블에 대한 쿼리를 담당하는 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Availability)

    async def get_rules(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[Availability]:
        """사용자의 근무 시간 규칙을 조회합니다."""
        result = await db.execute(
            select(Availability)
            .where(Availability.user_id == user_id)
            .order_by(Availability.start_time)
        )
        return list(result.scalars().all())

    async def get_busy_bookings(
        self,
        db: AsyncSession,
        user_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Booking]:
        """구간과 겹치는 바쁜 예약을 시작 시각 순으로 조회합니다.

        Retrieve ACCEPTED/PENDING bookings overlapping [start, end).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 ID (User UUID)
            start: 구간 시작 UTC (Range start, UTC)
            end: 구간 종료 UTC (Range end, UTC)

        Returns:
            list[Booking]: 겹치는 예약 목록 (Overlapping bookings)
        """
        query: Select = (
            select(Booking)
            .where(
                Booking.user_id == user_id,
                Booking.status.in_(BUSY_STATUSES),
                Booking.start_time < end,
                Booking.end_time > start,
            )
            .order_by(Booking.start_time)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
availability_repository: AvailabilityRepository = AvailabilityRepository()
