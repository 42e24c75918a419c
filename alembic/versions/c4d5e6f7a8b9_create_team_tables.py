"""create_team_tables

Revision ID: c4d5e6f7a8b9
Revises:
Create Date: 2026-10-19 10:00:00.000000

팀 관리 테이블 생성: teams, users, memberships, verification_tokens, availability, bookings.
Create team management tables: teams, users, memberships, verification_tokens, availability, bookings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'c4d5e6f7a8b9'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_plan = sa.Enum('FREE', 'TRIAL', 'PRO', name='user_plan')
membership_role = sa.Enum('MEMBER', 'ADMIN', 'OWNER', name='membership_role')
booking_status = sa.Enum('ACCEPTED', 'PENDING', 'CANCELLED', 'REJECTED', name='booking_status')


def upgrade() -> None:
    # teams — 팀 (name/slug 전역 고유, globally unique)
    op.create_table(
        'teams',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('slug', sa.String(255), nullable=True, unique=True),
        sa.Column('logo', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('hide_branding', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # users — 사용자 (초대로 생성된 사용자는 invited_to 보유)
    # Users; invitation-provisioned rows keep the inviting team in invited_to
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('username', sa.String(100), nullable=True, unique=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('plan', user_plan, server_default='TRIAL', nullable=False),
        sa.Column('time_zone', sa.String(64), server_default='Europe/London', nullable=False),
        sa.Column('invited_to', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('email_verified', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # memberships — 팀 멤버십 (user_id, team_id 복합 PK)
    op.create_table(
        'memberships',
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role', membership_role, nullable=False),
        sa.Column('accepted', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('disable_impersonation', sa.Boolean(), server_default=sa.text('false'), nullable=False),
    )
    op.create_index('ix_memberships_team', 'memberships', ['team_id'])

    # verification_tokens — 초대 가입 링크 토큰 (Invitation signup tokens)
    op.create_table(
        'verification_tokens',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('identifier', sa.String(255), nullable=False),
        sa.Column('token', sa.String(128), nullable=False, unique=True),
        sa.Column('expires', sa.DateTime(timezone=True), nullable=False),
    )

    # availability — 주간 근무 시간 규칙 (Weekly working-hour rules)
    op.create_table(
        'availability',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('days', JSONB(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
    )
    op.create_index('ix_availability_user', 'availability', ['user_id'])

    # bookings — 예약 (ACCEPTED/PENDING은 바쁜 시간)
    op.create_table(
        'bookings',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', booking_status, server_default='ACCEPTED', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_bookings_user_start', 'bookings', ['user_id', 'start_time'])


def downgrade() -> None:
    op.drop_index('ix_bookings_user_start', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_availability_user', table_name='availability')
    op.drop_table('availability')
    op.drop_table('verification_tokens')
    op.drop_index('ix_memberships_team', table_name='memberships')
    op.drop_table('memberships')
    op.drop_table('users')
    op.drop_table('teams')
    booking_status.drop(op.get_bind(), checkfirst=True)
    membership_role.drop(op.get_bind(), checkfirst=True)
    user_plan.drop(op.get_bind(), checkfirst=True)
