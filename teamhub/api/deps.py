"""FastAPI 의존성 주입 모듈 — 호출자 인증.

FastAPI dependency injection module — Caller authentication.
Every team procedure runs on behalf of an authenticated user; team-level
role checks live in the services because they depend on the team id.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    4. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.database import get_db
from teamhub.models.user import User
from teamhub.repositories.user_repository import user_repository
from teamhub.utils.exceptions import UnauthorizedError
from teamhub.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — auto_error=False: 헤더 누락도 401 UNAUTHORIZED로 처리
# (Missing header is reported as a coded 401 instead of HTTPBearer's default)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.

    Args:
        credentials: HTTP Bearer 토큰 자격 증명 (Bearer token credentials from header)
        db: 비동기 DB 세션 (Async database session)

    Returns:
        User: 인증된 사용자 ORM 인스턴스 (Authenticated user ORM instance)

    Raises:
        UnauthorizedError: 토큰 누락/무효/만료 또는 사용자 없음
                           (Missing, invalid or expired token, or unknown user)
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    try:
        payload: dict = decode_token(credentials.credentials)
        # 토큰 타입 검증 — Only access tokens are accepted
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id: UUID = UUID(payload["sub"])
    except UnauthorizedError:
        raise
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token")

    user: User | None = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("User not found")

    return user


# 편의 타입 별칭 — Annotated alias used by every procedure route
CurrentUser = Annotated[User, Depends(get_current_user)]
