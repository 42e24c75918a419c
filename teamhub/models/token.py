"""초대 인증 토큰 모델 — 가입 링크에 포함되는 일회성 토큰.

Verification token model — One-time tokens embedded in signup links
sent to people invited to a team by email.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from teamhub.database import Base


class VerificationToken(Base):
    """인증 토큰 테이블.

    Attributes:
        id: 고유 식별자 (Primary key UUID)
        identifier: 초대받은 이메일 (Invited email address)
        token: 64자리 16진수 토큰 (64 hex-char random token)
        expires: 만료 일시 (Expiration timestamp)
    """

    __tablename__ = "verification_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    identifier: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
