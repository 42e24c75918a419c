"""팀 및 멤버십 관련 SQLAlchemy ORM 모델 정의.

Team and Membership SQLAlchemy ORM model definitions.
Membership is the join entity between users and teams and carries the
member's role (OWNER > ADMIN > MEMBER) and invitation state.

Tables:
    - teams: 팀 (Teams with public profile fields)
    - memberships: 팀 멤버십 (User-team links, composite primary key)
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teamhub.database import Base


class MembershipRole(str, enum.Enum):
    """멤버십 역할 — Membership role within a team."""

    MEMBER = "MEMBER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


# 역할 순위 — 높을수록 높은 권한 (Higher rank means more authority)
ROLE_RANK: dict[MembershipRole, int] = {
    MembershipRole.MEMBER: 0,
    MembershipRole.ADMIN: 1,
    MembershipRole.OWNER: 2,
}


class Team(Base):
    """팀 모델 — 예약 페이지를 공유하는 사용자 그룹.

    Team model — A group of users sharing a public booking page.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 팀 이름 (Team name, unique)
        slug: URL 슬러그 (URL slug, unique, optional)
        logo: 로고 URL 또는 데이터 URI (Logo URL or data URI)
        bio: 소개 (Team description)
        hide_branding: 브랜딩 숨김 여부 (Hide product branding on team pages)
    """

    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    slug: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    logo: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    hide_branding: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — 팀 삭제 시 멤버십 일괄 삭제 (Memberships are removed with the team)
    memberships = relationship("Membership", back_populates="team", cascade="all, delete-orphan")


class Membership(Base):
    """멤버십 모델 — 사용자와 팀의 연결.

    Membership model — Links a user to a team with a role.
    A membership with accepted=False is a pending invitation.

    Attributes:
        user_id: 사용자 FK (복합 PK) (User foreign key, part of the composite key)
        team_id: 팀 FK (복합 PK) (Team foreign key, part of the composite key)
        role: 역할 (OWNER, ADMIN, MEMBER)
        accepted: 초대 수락 여부 (Whether the invitation was accepted)
        disable_impersonation: 관리자 대리 로그인 차단 (Blocks impersonation by team admins)
    """

    __tablename__ = "memberships"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    role: Mapped[MembershipRole] = mapped_column(
        Enum(MembershipRole, name="membership_role"), nullable=False
    )
    accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    disable_impersonation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # 관계 — Relationships
    user = relationship("User", back_populates="memberships")
    team = relationship("Team", back_populates="memberships")
