"""멤버십 레포지토리 — 멤버십 CRUD 및 역할 검사 쿼리.

Membership Repository — Membership CRUD and team role checks.
Memberships are keyed by (user_id, team_id), so lookups go through the
composite key instead of BaseRepository.get_by_id.

Role checks only consider accepted memberships:
    - is_team_member: 수락된 멤버십 (any accepted membership)
    - is_team_admin: 수락된 ADMIN 또는 OWNER (accepted ADMIN or OWNER)
    - is_team_owner: 수락된 OWNER (accepted OWNER)
"""

from uuid import UUID

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teamhub.models.team import Membership, MembershipRole
from teamhub.models.user import User
from teamhub.repositories.base import BaseRepository


class MembershipRepository(BaseRepository[Membership]):
    """멤버십 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the memberships table.
    """

    def __init__(self) -> None:
        super().__init__(Membership)

    async def get(
        self,
        db: AsyncSession,
        user_id: UUID,
        team_id: UUID,
        with_relations: bool = False,
    ) -> Membership | None:
        """복합 키로 멤버십을 조회합니다.

        Retrieve a membership by its (user_id, team_id) key.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 ID (User UUID)
            team_id: 팀 ID (Team UUID)
            with_relations: True이면 user/team 관계를 함께 로드
                            (Eager-load user and team when True)

        Returns:
            Membership | None: 멤버십 또는 None (Membership or None)
        """
        query: Select = select(Membership).where(
            Membership.user_id == user_id, Membership.team_id == team_id
        )
        if with_relations:
            query = query.options(selectinload(Membership.user), selectinload(Membership.team))
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_user(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[Membership]:
        """사용자의 모든 멤버십을 조회합니다."""
        result = await db.execute(select(Membership).where(Membership.user_id == user_id))
        return list(result.scalars().all())

    async def get_by_team(
        self,
        db: AsyncSession,
        team_id: UUID,
        with_users: bool = False,
    ) -> list[Membership]:
        """팀의 모든 멤버십을 조회합니다.

        Retrieve every membership of a team, optionally with users loaded.
        """
        query: Select = select(Membership).where(Membership.team_id == team_id)
        if with_users:
            query = query.options(selectinload(Membership.user))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_owner(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> Membership | None:
        """팀 소유자의 멤버십을 하나 조회합니다.

        Retrieve the team's earliest-registered accepted OWNER membership, with
        team and user loaded. Pending OWNER invitations are never returned.
        """
        query: Select = (
            select(Membership)
            .join(Membership.user)
            .options(selectinload(Membership.team), selectinload(Membership.user))
            .where(
                Membership.team_id == team_id,
                Membership.role == MembershipRole.OWNER,
                Membership.accepted.is_(True),
            )
            .order_by(User.created_at, Membership.user_id)
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def delete_by_team(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> None:
        """팀의 모든 멤버십을 삭제합니다."""
        await db.execute(delete(Membership).where(Membership.team_id == team_id))
        await db.flush()

    async def _has_role(
        self,
        db: AsyncSession,
        user_id: UUID,
        team_id: UUID,
        roles: tuple[MembershipRole, ...],
    ) -> bool:
        membership: Membership | None = await self.get(db, user_id, team_id)
        return membership is not None and membership.accepted and membership.role in roles

    async def is_team_member(self, db: AsyncSession, user_id: UUID, team_id: UUID) -> bool:
        """수락된 멤버인지 확인합니다."""
        return await self._has_role(db, user_id, team_id, tuple(MembershipRole))

    async def is_team_admin(self, db: AsyncSession, user_id: UUID, team_id: UUID) -> bool:
        """수락된 ADMIN 또는 OWNER인지 확인합니다."""
        return await self._has_role(
            db, user_id, team_id, (MembershipRole.ADMIN, MembershipRole.OWNER)
        )

    async def is_team_owner(self, db: AsyncSession, user_id: UUID, team_id: UUID) -> bool:
        """수락된 OWNER인지 확인합니다."""
        return await self._has_role(db, user_id, team_id, (MembershipRole.OWNER,))


# 싱글턴 인스턴스 — Singleton instance
membership_repository: MembershipRepository = MembershipRepository()
