"""가용 시간 서비스 — 멤버의 근무 시간과 예약으로 가용 구간 계산.

Availability Service — Computes a member's free time within a date range
from their weekly working-hour rules and their busy bookings.

Working hours are wall-clock times in the member's own time zone; every
interval in the response is expressed in UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.models.availability import Availability
from teamhub.models.user import User
from teamhub.repositories.availability_repository import availability_repository
from teamhub.schemas.team import (
    BusyTimeResponse,
    DateRangeResponse,
    MemberAvailabilityResponse,
    WorkingHoursResponse,
)
from teamhub.utils.exceptions import BadRequestError

# 규칙이 없을 때의 기본 근무 시간 — 월~금 09:00-17:00 (0=일요일)
DEFAULT_WORKING_DAYS: list[int] = [1, 2, 3, 4, 5]
DEFAULT_START: time = time(9, 0)
DEFAULT_END: time = time(17, 0)

Interval = tuple[datetime, datetime]


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise BadRequestError(f"Unknown time zone: {name}")


def _as_utc(value: datetime) -> datetime:
    # SQLite는 tz 정보를 버리므로 naive 값은 UTC로 간주 (naive values are stored UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_date_only(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _parse_datetime(value: str, tz: ZoneInfo, end_of_day: bool = False) -> datetime:
    """ISO 날짜/시각을 UTC로 변환합니다.

    A date without a time means the start of that day, or with end_of_day
    the start of the following day so the whole day is included.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise BadRequestError(f"Invalid date: {value}")
    if end_of_day and _is_date_only(value):
        parsed += timedelta(days=1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def _merge(intervals: list[Interval]) -> list[Interval]:
    """겹치거나 맞닿은 구간을 병합합니다."""
    merged: list[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _subtract(windows: list[Interval], busy: list[Interval]) -> list[Interval]:
    """근무 구간에서 바쁜 구간을 뺍니다."""
    free: list[Interval] = []
    busy = _merge(busy)
    for start, end in windows:
        cursor = start
        for b_start, b_end in busy:
            if b_end <= cursor or b_start >= end:
                continue
            if b_start > cursor:
                free.append((cursor, b_start))
            cursor = max(cursor, b_end)
            if cursor >= end:
                break
        if cursor < end:
            free.append((cursor, end))
    return free


def _working_windows(
    rules: list[tuple[list[int], time, time]],
    tz: ZoneInfo,
    start: datetime,
    end: datetime,
) -> list[Interval]:
    """구간 내 각 날짜에 대해 근무 규칙을 UTC 구간으로 펼칩니다."""
    windows: list[Interval] = []
    # 전날 시작해 자정을 넘긴 규칙의 꼬리도 포함 (Overnight rules from the previous day)
    day: date = start.astimezone(tz).date() - timedelta(days=1)
    last: date = end.astimezone(tz).date()
    while day <= last:
        weekday = (day.weekday() + 1) % 7  # 월=0 → 일=0 기준으로 변환 (Sunday-based weekday)
        for days, rule_start, rule_end in rules:
            if weekday not in days:
                continue
            w_start = datetime.combine(day, rule_start, tzinfo=tz)
            w_end = datetime.combine(day, rule_end, tzinfo=tz)
            if w_end <= w_start:
                # 자정을 넘기는 규칙 — Rule ending at or after midnight
                w_end += timedelta(days=1)
            w_start = max(w_start.astimezone(timezone.utc), start)
            w_end = min(w_end.astimezone(timezone.utc), end)
            if w_start < w_end:
                windows.append((w_start, w_end))
        day += timedelta(days=1)
    return _merge(windows)


class AvailabilityService:
    """멤버 가용 시간 계산을 처리하는 서비스."""

    async def get_user_availability(
        self,
        db: AsyncSession,
        user: User,
        date_from: str,
        date_to: str,
        time_zone: str,
    ) -> MemberAvailabilityResponse:
        """사용자의 가용 시간을 계산합니다.

        Compute a user's availability between date_from and date_to.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 대상 사용자 (Member whose availability is computed)
            date_from: 시작 ISO 날짜/시각 (ISO start; naive values use time_zone)
            date_to: 종료 ISO 날짜/시각 (ISO end; naive values use time_zone,
                     a bare date includes that whole day)
            time_zone: 조회자 시간대 (Viewer's IANA time zone)

        Returns:
            MemberAvailabilityResponse: 바쁜 구간, 근무 규칙, 가용 구간

        Raises:
            BadRequestError: 날짜/시간대가 잘못되었거나 종료가 시작보다 이를 때
                             (Invalid dates or time zone, or date_to before date_from)
        """
        viewer_tz = _zone(time_zone)
        start = _parse_datetime(date_from, viewer_tz)
        end = _parse_datetime(date_to, viewer_tz, end_of_day=True)
        if end < start:
            raise BadRequestError("dateTo must not be before dateFrom")

        member_tz = _zone(user.time_zone)
        stored: list[Availability] = await availability_repository.get_rules(db, user.id)
        rules: list[tuple[list[int], time, time]] = [
            (list(r.days), r.start_time, r.end_time) for r in stored
        ] or [(DEFAULT_WORKING_DAYS, DEFAULT_START, DEFAULT_END)]

        bookings = await availability_repository.get_busy_bookings(db, user.id, start, end)
        busy: list[BusyTimeResponse] = [
            BusyTimeResponse(start=_as_utc(b.start_time), end=_as_utc(b.end_time), title=b.title)
            for b in bookings
        ]

        windows = _working_windows(rules, member_tz, start, end)
        free = _subtract(windows, [(b.start, b.end) for b in busy])

        return MemberAvailabilityResponse(
            busy=busy,
            time_zone=user.time_zone,
            working_hours=[
                WorkingHoursResponse(
                    days=sorted(days),
                    start_time=rule_start.strftime("%H:%M"),
                    end_time=rule_end.strftime("%H:%M"),
                )
                for days, rule_start, rule_end in rules
            ],
            date_ranges=[DateRangeResponse(start=s, end=e) for s, e in free],
        )


# 싱글턴 인스턴스 — Singleton instance
availability_service: AvailabilityService = AvailabilityService()
