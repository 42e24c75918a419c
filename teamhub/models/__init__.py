"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package registers every model with the SQLAlchemy
metadata, which Alembic migrations and relationship resolution rely on.

Modules:
    user: 사용자 및 요금제 (Users and plan tiers)
    team: 팀 및 멤버십 (Teams and memberships with roles)
    token: 초대 인증 토큰 (Invitation verification tokens)
    availability: 근무 가능 시간 및 예약 (Working-hour rules and bookings)
"""

from teamhub.models.user import User, UserPlan
from teamhub.models.team import Membership, MembershipRole, Team
from teamhub.models.token import VerificationToken
from teamhub.models.availability import Availability, Booking, BookingStatus

__all__ = [
    "User", "UserPlan",
    "Team", "Membership", "MembershipRole",
    "VerificationToken",
    "Availability", "Booking", "BookingStatus",
]
