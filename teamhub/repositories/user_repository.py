"""사용자 레포지토리 — 사용자 조회 및 초대 토큰 생성.

User Repository — User lookups and invitation token persistence.
"""

from datetime import datetime

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.models.token import VerificationToken
from teamhub.models.user import User
from teamhub.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the users table.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_by_username_or_email(
        self,
        db: AsyncSession,
        username_or_email: str,
    ) -> User | None:
        """사용자명 또는 이메일이 일치하는 사용자를 조회합니다.

        Retrieve the first user whose username or email equals the input.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            username_or_email: 사용자명 또는 이메일 (Username or email)

        Returns:
            User | None: 사용자 또는 None (User or None)
        """
        query: Select = (
            select(User)
            .where(or_(User.username == username_or_email, User.email == username_or_email))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def create_verification_token(
        self,
        db: AsyncSession,
        identifier: str,
        token: str,
        expires: datetime,
    ) -> VerificationToken:
        """초대 가입 링크용 인증 토큰을 저장합니다.

        Persist a verification token for an invitation signup link.
        """
        verification_token: VerificationToken = VerificationToken(
            identifier=identifier, token=token, expires=expires
        )
        db.add(verification_token)
        await db.flush()
        return verification_token


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
