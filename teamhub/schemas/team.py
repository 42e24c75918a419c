"""팀 및 멤버십 관련 Pydantic 요청/응답 스키마 정의.

Team and Membership Pydantic request/response schema definitions.
Mutation payloads are JSON bodies; query procedures take query parameters
and only define response schemas here.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from teamhub.models.team import MembershipRole
from teamhub.models.user import UserPlan


# === 요청 (Request) 스키마 ===

class TeamCreate(BaseModel):
    """팀 생성 요청 스키마.

    Attributes:
        name: 팀 이름 (Team name; slug is derived from it)
    """

    name: str = Field(min_length=1, max_length=255)


class TeamUpdate(BaseModel):
    """팀 수정 요청 스키마 (부분 업데이트).

    Team update request schema. Only fields present in the payload are written;
    name, slug and hide_branding may be omitted but never set to null.
    """

    id: UUID  # 수정할 팀 ID (Team to update)
    bio: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    logo: str | None = None
    slug: str | None = Field(default=None, min_length=1, max_length=255)
    hide_branding: bool | None = None

    @field_validator("name", "slug", "hide_branding")
    @classmethod
    def reject_null(cls, value):
        # 생략은 허용, 명시적 null은 거부 (Omitted fields are not validated)
        if value is None:
            raise ValueError("must not be null")
        return value


class TeamIdInput(BaseModel):
    """팀 ID만 받는 요청 스키마 (delete, upgradeTeam, ensureSubscriptionQuantityCorrectness)."""

    team_id: UUID


class MemberInput(BaseModel):
    """팀 + 멤버 ID 요청 스키마 (removeMember)."""

    team_id: UUID
    member_id: UUID


class InviteMemberInput(BaseModel):
    """멤버 초대 요청 스키마.

    Attributes:
        team_id: 팀 ID (Team UUID)
        username_or_email: 초대 대상 사용자명 또는 이메일 (Invitee username or email)
        role: 부여할 역할 (Role granted on acceptance)
        language: 초대 메일 언어 (Invitation email language)
        send_email_invitation: 기존 사용자에게도 메일 발송 여부
                               (Also email invitees who already have an account)
    """

    team_id: UUID
    username_or_email: str = Field(min_length=1)
    role: MembershipRole
    language: str = "en"
    send_email_invitation: bool


class AcceptOrLeaveInput(BaseModel):
    """초대 수락/거절 요청 스키마."""

    team_id: UUID
    accept: bool  # True=수락 (accept), False=거절 또는 탈퇴 (decline or leave)


class ChangeMemberRoleInput(BaseModel):
    """멤버 역할 변경 요청 스키마."""

    team_id: UUID
    member_id: UUID
    role: MembershipRole


class UpdateMembershipInput(BaseModel):
    """본인 멤버십 설정 변경 요청 스키마."""

    team_id: UUID
    member_id: UUID
    disable_impersonation: bool


# === 응답 (Response) 스키마 ===

class TeamResponse(BaseModel):
    """팀 응답 스키마.

    Attributes:
        id: 팀 UUID 문자열 (Team UUID as string)
        name: 팀 이름 (Team name)
        slug: URL 슬러그 (URL slug, nullable)
        logo: 로고 (Logo, nullable)
        bio: 소개 (Description, nullable)
        hide_branding: 브랜딩 숨김 여부 (Hide branding flag)
        created_at: 생성 일시 (Creation timestamp)
    """

    id: str
    name: str
    slug: str | None
    logo: str | None
    bio: str | None
    hide_branding: bool
    created_at: datetime


class TeamMemberResponse(BaseModel):
    """팀 상세용 멤버 응답 스키마."""

    id: str  # 사용자 UUID (User UUID)
    name: str | None
    email: str
    username: str | None
    role: MembershipRole
    accepted: bool
    plan: UserPlan
    disable_impersonation: bool


class CallerMembershipResponse(BaseModel):
    """호출자 본인의 멤버십 요약."""

    role: MembershipRole
    is_missing_seat: bool  # 호출자가 FREE 플랜인지 (Caller is on the FREE plan)
    accepted: bool


class TeamDetailResponse(TeamResponse):
    """팀 상세 응답 스키마 — 멤버 목록과 호출자 멤버십 포함.

    Attributes:
        members: 멤버 목록 (All memberships, pending included)
        membership: 호출자 멤버십 요약 (Caller's membership summary)
        requires_upgrade: 업그레이드 필요 여부 (Some member is not on PRO, hosted only)
    """

    members: list[TeamMemberResponse] = []
    membership: CallerMembershipResponse
    requires_upgrade: bool


class TeamListItemResponse(TeamResponse):
    """내 팀 목록 항목 — 팀 정보 + 내 역할/수락 여부."""

    role: MembershipRole
    accepted: bool


class MembershipResponse(BaseModel):
    """멤버십 응답 스키마."""

    user_id: str
    team_id: str
    role: MembershipRole
    accepted: bool
    disable_impersonation: bool


# === 가용 시간 (Availability) 스키마 ===

class BusyTimeResponse(BaseModel):
    """바쁜 시간 구간 (UTC)."""

    start: datetime
    end: datetime
    title: str | None = None


class WorkingHoursResponse(BaseModel):
    """근무 시간 규칙 (멤버 시간대 기준 벽시계 시각).

    Attributes:
        days: 요일 목록 (Weekdays, 0=Sunday .. 6=Saturday)
        start_time: 시작 시각 "HH:MM" (Start wall-clock time)
        end_time: 종료 시각 "HH:MM" (End wall-clock time)
    """

    days: list[int]
    start_time: str
    end_time: str


class DateRangeResponse(BaseModel):
    """예약 가능한 구간 (UTC)."""

    start: datetime
    end: datetime


class MemberAvailabilityResponse(BaseModel):
    """멤버 가용 시간 응답 스키마.

    Attributes:
        busy: 바쁜 구간 목록 (Busy intervals in UTC)
        time_zone: 멤버 시간대 (Member's IANA time zone)
        working_hours: 근무 시간 규칙 (Working-hour rules)
        date_ranges: 근무 시간에서 바쁜 구간을 뺀 가용 구간
                     (Working windows minus busy time, UTC)
    """

    busy: list[BusyTimeResponse]
    time_zone: str
    working_hours: list[WorkingHoursResponse]
    date_ranges: list[DateRangeResponse]


# === 과금 (Billing) 스키마 ===

class TeamSeatsResponse(BaseModel):
    """팀 좌석 통계.

    Attributes:
        total_members: 전체 멤버 수 (All memberships, owners and pending included)
        paid_seats: 유료 좌석 수 (Accepted non-owner members on PRO)
        missing_seats: 좌석이 없는 멤버 수 (Non-owner members not on PRO)
    """

    total_members: int
    paid_seats: int
    missing_seats: int


class UpgradeTeamResponse(BaseModel):
    """팀 업그레이드 응답 — 결제가 필요하면 Checkout URL."""

    url: str | None = None


class SubscriptionQuantityResponse(BaseModel):
    """좌석 수량 보정 결과."""

    quantity: int  # 보정 후 좌석 수량 (Seat quantity after reconciliation)
    updated: bool  # Stripe 구독이 변경되었는지 (Whether Stripe was changed)
