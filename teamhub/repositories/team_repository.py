"""팀 레포지토리 — 팀 조회 및 이름/슬러그 중복 검사.

Team Repository — Team lookups and name/slug collision checks.
"""

from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teamhub.models.team import Membership, Team
from teamhub.repositories.base import BaseRepository


class TeamRepository(BaseRepository[Team]):
    """팀 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the teams table.
    """

    def __init__(self) -> None:
        super().__init__(Team)

    async def get_with_members(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> Team | None:
        """멤버십과 사용자를 함께 로드하여 팀을 조회합니다.

        Retrieve a team with memberships and their users eagerly loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            team_id: 팀 ID (Team UUID)

        Returns:
            Team | None: 멤버가 로드된 팀 또는 None (Team with members, or None)
        """
        query: Select = (
            select(Team)
            .options(selectinload(Team.memberships).selectinload(Membership.user))
            .where(Team.id == team_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_ids(
        self,
        db: AsyncSession,
        team_ids: list[UUID],
    ) -> list[Team]:
        """ID 목록에 해당하는 팀들을 조회합니다."""
        if not team_ids:
            return []
        result = await db.execute(select(Team).where(Team.id.in_(team_ids)))
        return list(result.scalars().all())

    async def count_name_collisions(
        self,
        db: AsyncSession,
        name: str,
        slug: str,
    ) -> int:
        """이름 또는 슬러그가 겹치는 팀 수를 셉니다.

        Count teams whose name or slug equals the given values.
        """
        query: Select = select(func.count()).select_from(Team).where(
            or_(Team.name == name, Team.slug == slug)
        )
        return (await db.execute(query)).scalar() or 0

    async def get_by_slug(
        self,
        db: AsyncSession,
        slug: str,
    ) -> list[Team]:
        """슬러그로 팀 목록을 조회합니다."""
        result = await db.execute(select(Team).where(Team.slug == slug))
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
team_repository: TeamRepository = TeamRepository()
