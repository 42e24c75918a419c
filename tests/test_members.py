"""멤버십 프로시저 테스트.

Membership procedure tests — removeMember, inviteMember, acceptOrLeave,
changeMemberRole, getMembershipbyUser and updateMembership.
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.config import settings
from teamhub.models.team import Membership, MembershipRole
from teamhub.models.token import VerificationToken
from teamhub.models.user import User
from tests.conftest import add_member, auth_header

URL = "/api/v1/viewer/teams"


async def _membership(db: AsyncSession, user_id, team_id) -> Membership | None:
    result = await db.execute(
        select(Membership)
        .where(Membership.user_id == user_id, Membership.team_id == team_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@pytest.fixture
def invite_email(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """초대 메일 발송을 가로챕니다."""
    mock = AsyncMock()
    monkeypatch.setattr("teamhub.services.team_service.send_team_invite_email", mock)
    return mock


class TestRemoveMember:
    """멤버 제거 테스트."""

    async def test_admin_removes_member(self, client: AsyncClient, db: AsyncSession, team, admin, member):
        """관리자가 멤버 제거."""
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(member.id),
        }, headers=auth_header(admin))
        assert res.status_code == 204
        assert await _membership(db, member.id, team.id) is None

    async def test_member_removes_self(self, client: AsyncClient, db: AsyncSession, team, member):
        """멤버는 자기 자신을 제거할 수 있다."""
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(member.id),
        }, headers=auth_header(member))
        assert res.status_code == 204

    async def test_member_cannot_remove_others(self, client: AsyncClient, team, member, admin):
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(admin.id),
        }, headers=auth_header(member))
        assert res.status_code == 401

    async def test_admin_cannot_remove_owner(self, client: AsyncClient, team, admin, owner):
        """소유자는 소유자만 제거 가능."""
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(owner.id),
        }, headers=auth_header(admin))
        assert res.status_code == 401

    async def test_owner_cannot_remove_self(self, client: AsyncClient, team, owner):
        """소유자는 자기 자신 제거 불가 (403)."""
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(owner.id),
        }, headers=auth_header(owner))
        assert res.status_code == 403
        assert res.json()["detail"] == "You can not remove yourself from a team you own."

    async def test_admin_cannot_remove_self(self, client: AsyncClient, team, admin):
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(admin.id),
        }, headers=auth_header(admin))
        assert res.status_code == 403

    async def test_unknown_membership(self, client: AsyncClient, team, owner):
        res = await client.post(f"{URL}/removeMember", json={
            "team_id": str(team.id), "member_id": str(uuid.uuid4()),
        }, headers=auth_header(owner))
        assert res.status_code == 404
        assert res.json()["code"] == "NOT_FOUND"


class TestInviteMember:
    """멤버 초대 테스트."""

    async def test_invite_existing_user(self, client: AsyncClient, db: AsyncSession, team, admin, outsider, invite_email):
        """기존 사용자 초대 — 대기 멤버십 생성, 메일 미발송."""
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "outsider",
            "role": "MEMBER",
            "send_email_invitation": False,
        }, headers=auth_header(admin))
        assert res.status_code == 204
        membership = await _membership(db, outsider.id, team.id)
        assert membership is not None
        assert membership.accepted is False
        assert membership.role == MembershipRole.MEMBER
        invite_email.assert_not_awaited()

    async def test_invite_existing_user_with_email(self, client: AsyncClient, team, admin, outsider, invite_email):
        """send_email_invitation=True면 초대 대상 이메일로 발송."""
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "outsider",
            "role": "ADMIN",
            "language": "de",
            "send_email_invitation": True,
        }, headers=auth_header(admin))
        assert res.status_code == 204
        invite_email.assert_awaited_once_with(
            language="de",
            from_name="Adam Admin",
            to=outsider.email,
            team_name="Acme",
            join_link=f"{settings.WEBAPP_URL}/settings/teams",
        )

    async def test_invite_new_email(self, client: AsyncClient, db: AsyncSession, team, admin, invite_email):
        """없는 이메일 — 사용자, 대기 멤버십, 인증 토큰 생성 후 가입 링크 발송."""
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "new.person@example.com",
            "role": "MEMBER",
            "send_email_invitation": False,
        }, headers=auth_header(admin))
        assert res.status_code == 204

        user = (await db.execute(select(User).where(User.email == "new.person@example.com"))).scalar_one()
        assert user.invited_to == team.id
        assert user.username is None
        membership = await _membership(db, user.id, team.id)
        assert membership is not None and membership.accepted is False

        token = (await db.execute(
            select(VerificationToken).where(VerificationToken.identifier == "new.person@example.com")
        )).scalar_one()
        assert len(token.token) == 64

        invite_email.assert_awaited_once()
        kwargs = invite_email.await_args.kwargs
        assert kwargs["to"] == "new.person@example.com"
        assert kwargs["join_link"] == (
            f"{settings.WEBAPP_URL}/auth/signup?token={token.token}&callbackUrl=/settings/teams"
        )

    async def test_unknown_username(self, client: AsyncClient, team, admin, invite_email):
        """이메일 형식이 아닌 없는 사용자명은 404."""
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "nobody",
            "role": "MEMBER",
            "send_email_invitation": True,
        }, headers=auth_header(admin))
        assert res.status_code == 404
        assert res.json()["detail"] == "Invite failed because there is no corresponding user for nobody"

    async def test_duplicate_invite(self, client: AsyncClient, team, admin, member, invite_email):
        """이미 멤버인 사용자 초대 시 403."""
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "member@example.com",
            "role": "MEMBER",
            "send_email_invitation": False,
        }, headers=auth_header(admin))
        assert res.status_code == 403
        assert res.json()["detail"] == "This user is a member of this team / has a pending invitation."

    async def test_member_cannot_invite(self, client: AsyncClient, team, member, outsider):
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "outsider",
            "role": "MEMBER",
            "send_email_invitation": False,
        }, headers=auth_header(member))
        assert res.status_code == 401

    async def test_admin_cannot_invite_owner(self, client: AsyncClient, team, admin, outsider):
        """OWNER 초대는 소유자만 가능."""
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "outsider",
            "role": "OWNER",
            "send_email_invitation": False,
        }, headers=auth_header(admin))
        assert res.status_code == 401

    async def test_owner_invites_owner(self, client: AsyncClient, db: AsyncSession, team, owner, outsider, invite_email):
        res = await client.post(f"{URL}/inviteMember", json={
            "team_id": str(team.id),
            "username_or_email": "outsider",
            "role": "OWNER",
            "send_email_invitation": False,
        }, headers=auth_header(owner))
        assert res.status_code == 204
        assert (await _membership(db, outsider.id, team.id)).role == MembershipRole.OWNER


class TestAcceptOrLeave:
    """초대 수락/거절 및 탈퇴 테스트."""

    async def test_accept(self, client: AsyncClient, db: AsyncSession, team, outsider):
        await add_member(db, team, outsider, accepted=False)
        await db.commit()
        res = await client.post(f"{URL}/acceptOrLeave", json={
            "team_id": str(team.id), "accept": True,
        }, headers=auth_header(outsider))
        assert res.status_code == 204
        assert (await _membership(db, outsider.id, team.id)).accepted is True

    async def test_decline(self, client: AsyncClient, db: AsyncSession, team, outsider):
        """거절 시 멤버십 삭제."""
        await add_member(db, team, outsider, accepted=False)
        await db.commit()
        res = await client.post(f"{URL}/acceptOrLeave", json={
            "team_id": str(team.id), "accept": False,
        }, headers=auth_header(outsider))
        assert res.status_code == 204
        assert await _membership(db, outsider.id, team.id) is None

    async def test_member_leaves(self, client: AsyncClient, db: AsyncSession, team, member):
        res = await client.post(f"{URL}/acceptOrLeave", json={
            "team_id": str(team.id), "accept": False,
        }, headers=auth_header(member))
        assert res.status_code == 204
        assert await _membership(db, member.id, team.id) is None

    async def test_no_membership(self, client: AsyncClient, team, outsider):
        res = await client.post(f"{URL}/acceptOrLeave", json={
            "team_id": str(team.id), "accept": True,
        }, headers=auth_header(outsider))
        assert res.status_code == 404

    async def test_only_owner_cannot_leave(self, client: AsyncClient, team, owner):
        """유일한 소유자는 떠날 수 없다."""
        res = await client.post(f"{URL}/acceptOrLeave", json={
            "team_id": str(team.id), "accept": False,
        }, headers=auth_header(owner))
        assert res.status_code == 403

    async def test_owner_leaves_when_another_owner(self, client: AsyncClient, db: AsyncSession, team, owner, outsider):
        await add_member(db, team, outsider, MembershipRole.OWNER)
        await db.commit()
        res = await client.post(f"{URL}/acceptOrLeave", json={
            "team_id": str(team.id), "accept": False,
        }, headers=auth_header(owner))
        assert res.status_code == 204
        assert await _membership(db, owner.id, team.id) is None


class TestChangeMemberRole:
    """멤버 역할 변경 테스트."""

    async def _change(self, client: AsyncClient, caller, team, target, role: str):
        return await client.post(f"{URL}/changeMemberRole", json={
            "team_id": str(team.id), "member_id": str(target.id), "role": role,
        }, headers=auth_header(caller))

    async def test_owner_promotes_member(self, client: AsyncClient, team, owner, member):
        res = await self._change(client, owner, team, member, "ADMIN")
        assert res.status_code == 200
        data = res.json()
        assert data["role"] == "ADMIN"
        assert data["user_id"] == str(member.id)

    async def test_admin_promotes_member(self, client: AsyncClient, team, admin, member):
        res = await self._change(client, admin, team, member, "ADMIN")
        assert res.status_code == 200

    async def test_admin_cannot_award_owner(self, client: AsyncClient, team, admin, member):
        """OWNER 부여는 소유자만 가능 (401)."""
        res = await self._change(client, admin, team, member, "OWNER")
        assert res.status_code == 401

    async def test_owner_awards_owner(self, client: AsyncClient, team, owner, member):
        res = await self._change(client, owner, team, member, "OWNER")
        assert res.status_code == 200
        assert res.json()["role"] == "OWNER"

    async def test_admin_cannot_change_owner(self, client: AsyncClient, team, admin, owner):
        res = await self._change(client, admin, team, owner, "MEMBER")
        assert res.status_code == 403
        assert res.json()["detail"] == "You can not change the role of an owner if you are an admin."

    async def test_only_owner_cannot_be_demoted(self, client: AsyncClient, team, owner):
        """유일한 소유자는 강등 불가."""
        res = await self._change(client, owner, team, owner, "ADMIN")
        assert res.status_code == 403
        assert res.json()["detail"] == "You can not change the role of the only owner of a team."

    async def test_pending_owner_does_not_count(self, client: AsyncClient, db: AsyncSession, team, owner, outsider):
        """수락하지 않은 소유자는 소유자 수에 포함되지 않는다."""
        await add_member(db, team, outsider, MembershipRole.OWNER, accepted=False)
        await db.commit()
        res = await self._change(client, owner, team, owner, "MEMBER")
        assert res.status_code == 403

    async def test_owner_demotes_self_with_co_owner(self, client: AsyncClient, db: AsyncSession, team, owner, outsider):
        await add_member(db, team, outsider, MembershipRole.OWNER)
        await db.commit()
        res = await self._change(client, owner, team, owner, "MEMBER")
        assert res.status_code == 200
        assert res.json()["role"] == "MEMBER"

    async def test_admin_cannot_change_self(self, client: AsyncClient, team, admin):
        res = await self._change(client, admin, team, admin, "MEMBER")
        assert res.status_code == 403
        assert res.json()["detail"] == "You can not change yourself to a higher role."

    async def test_member_unauthorized(self, client: AsyncClient, team, member, admin):
        res = await self._change(client, member, team, admin, "MEMBER")
        assert res.status_code == 401

    async def test_unknown_target(self, client: AsyncClient, team, owner, outsider):
        res = await self._change(client, owner, team, outsider, "MEMBER")
        assert res.status_code == 404


class TestMembershipSelfService:
    """본인 멤버십 조회/수정 테스트."""

    async def test_get_own_membership(self, client: AsyncClient, team, member):
        res = await client.get(f"{URL}/getMembershipbyUser", params={
            "team_id": str(team.id), "member_id": str(member.id),
        }, headers=auth_header(member))
        assert res.status_code == 200
        data = res.json()
        assert data["role"] == "MEMBER"
        assert data["disable_impersonation"] is False

    async def test_get_other_membership(self, client: AsyncClient, team, owner, member):
        """다른 사람의 멤버십은 소유자도 조회 불가."""
        res = await client.get(f"{URL}/getMembershipbyUser", params={
            "team_id": str(team.id), "member_id": str(member.id),
        }, headers=auth_header(owner))
        assert res.status_code == 401
        assert res.json()["detail"] == "You cannot view memberships that are not your own."

    async def test_get_missing_membership(self, client: AsyncClient, team, outsider):
        res = await client.get(f"{URL}/getMembershipbyUser", params={
            "team_id": str(team.id), "member_id": str(outsider.id),
        }, headers=auth_header(outsider))
        assert res.status_code == 200
        assert res.json() is None

    async def test_update_own_membership(self, client: AsyncClient, team, member):
        res = await client.post(f"{URL}/updateMembership", json={
            "team_id": str(team.id), "member_id": str(member.id), "disable_impersonation": True,
        }, headers=auth_header(member))
        assert res.status_code == 200
        assert res.json()["disable_impersonation"] is True

    async def test_update_other_membership(self, client: AsyncClient, team, owner, member):
        res = await client.post(f"{URL}/updateMembership", json={
            "team_id": str(team.id), "member_id": str(member.id), "disable_impersonation": True,
        }, headers=auth_header(owner))
        assert res.status_code == 401
        assert res.json()["detail"] == "You cannot edit memberships that are not your own."

    async def test_update_missing_membership(self, client: AsyncClient, team, outsider):
        res = await client.post(f"{URL}/updateMembership", json={
            "team_id": str(team.id), "member_id": str(outsider.id), "disable_impersonation": True,
        }, headers=auth_header(outsider))
        assert res.status_code == 404
