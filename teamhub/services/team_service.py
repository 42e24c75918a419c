"""팀 서비스 — 팀/멤버십 프로시저의 비즈니스 로직.

Team Service — Business logic behind the team procedures.
Handles role-tier authorization (OWNER > ADMIN > MEMBER), the
invite-versus-provisional-membership branch, seat billing hooks and
CRM sync.

Authorization summary:
    - get / getMemberAvailability: 팀 멤버 (team member)
    - update / removeMember / inviteMember / changeMemberRole: 관리자 이상 (admin or owner)
    - delete / upgradeTeam: 소유자 (owner)
    - OWNER 역할 부여: 소유자만 (only owners grant OWNER)
    - getMembershipbyUser / updateMembership: 본인만 (self only)
"""

import re
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

from slugify import slugify
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.config import settings
from teamhub.models.team import ROLE_RANK, Membership, MembershipRole, Team
from teamhub.models.user import User, UserPlan
from teamhub.repositories.membership_repository import membership_repository
from teamhub.repositories.team_repository import team_repository
from teamhub.repositories.user_repository import user_repository
from teamhub.schemas.team import (
    CallerMembershipResponse,
    ChangeMemberRoleInput,
    InviteMemberInput,
    MemberAvailabilityResponse,
    MembershipResponse,
    SubscriptionQuantityResponse,
    TeamCreate,
    TeamDetailResponse,
    TeamListItemResponse,
    TeamMemberResponse,
    TeamResponse,
    TeamSeatsResponse,
    TeamUpdate,
    UpdateMembershipInput,
    UpgradeTeamResponse,
)
from teamhub.services.availability_service import availability_service
from teamhub.services.billing_service import BillingError, billing_service
from teamhub.services.sync_service import sync_service
from teamhub.utils.email import send_team_invite_email
from teamhub.utils.exceptions import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from teamhub.utils.logging import get_logger

logger = get_logger(__name__)

# 느슨한 이메일 형식 검사 — Liberal email match
EMAIL_PATTERN: re.Pattern[str] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# 초대 토큰 유효 기간 — Invitation token lifetime
INVITE_TOKEN_TTL: timedelta = timedelta(days=7)


class TeamService:
    """팀 관련 비즈니스 로직을 처리하는 서비스.

    Service handling team and membership business logic.
    Route handlers own the transaction and commit after a mutation.
    """

    def _to_team_response(self, team: Team) -> TeamResponse:
        return TeamResponse(
            id=str(team.id),
            name=team.name,
            slug=team.slug,
            logo=team.logo,
            bio=team.bio,
            hide_branding=team.hide_branding,
            created_at=team.created_at,
        )

    def _to_membership_response(self, membership: Membership) -> MembershipResponse:
        return MembershipResponse(
            user_id=str(membership.user_id),
            team_id=str(membership.team_id),
            role=membership.role,
            accepted=membership.accepted,
            disable_impersonation=membership.disable_impersonation,
        )

    async def get_team(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
    ) -> TeamDetailResponse:
        """팀 상세 정보를 멤버 목록과 함께 조회합니다.

        Retrieve a team with its members. The caller must be one of them,
        accepted or pending.

        Raises:
            UnauthorizedError: 팀 멤버가 아니거나 팀이 없을 때
                               (Caller is not a member, or the team does not exist)
        """
        team: Team | None = await team_repository.get_with_members(db, team_id)
        mine: Membership | None = None
        if team is not None:
            mine = next((m for m in team.memberships if m.user_id == user.id), None)
        if team is None or mine is None:
            raise UnauthorizedError("You are not a member of this team.")

        members = [
            TeamMemberResponse(
                id=str(m.user.id),
                name=m.user.name,
                email=m.user.email,
                username=m.user.username,
                role=m.role,
                accepted=m.accepted,
                plan=m.user.plan,
                disable_impersonation=m.disable_impersonation,
            )
            for m in team.memberships
        ]
        requires_upgrade = settings.HOSTED_FEATURES and any(
            m.user.plan != UserPlan.PRO for m in team.memberships
        )
        return TeamDetailResponse(
            **self._to_team_response(team).model_dump(),
            members=members,
            membership=CallerMembershipResponse(
                role=mine.role,
                is_missing_seat=mine.user.plan == UserPlan.FREE,
                accepted=mine.accepted,
            ),
            requires_upgrade=requires_upgrade,
        )

    async def list_teams(
        self,
        db: AsyncSession,
        user: User,
    ) -> list[TeamListItemResponse]:
        """내가 속한 팀 목록을 역할 내림차순으로 조회합니다.

        List the caller's teams, owners first, then admins, then members.
        Pending invitations are included with accepted=False.
        """
        memberships = await membership_repository.get_by_user(db, user.id)
        memberships.sort(key=lambda m: ROLE_RANK[m.role], reverse=True)
        teams = {t.id: t for t in await team_repository.get_by_ids(db, [m.team_id for m in memberships])}
        return [
            TeamListItemResponse(
                **self._to_team_response(teams[m.team_id]).model_dump(),
                role=m.role,
                accepted=m.accepted,
            )
            for m in memberships
            if m.team_id in teams
        ]

    async def create_team(
        self,
        db: AsyncSession,
        user: User,
        data: TeamCreate,
    ) -> TeamResponse:
        """새 팀을 생성하고 호출자를 소유자로 등록합니다.

        Create a team with the caller as its accepted OWNER.

        Raises:
            UnauthorizedError: FREE 플랜 사용자 (Caller is on the FREE plan)
            BadRequestError: 이름 또는 슬러그 중복 (Name or slug already taken)
        """
        if user.plan == UserPlan.FREE:
            raise UnauthorizedError("You are not a pro user.")

        slug = slugify(data.name)
        if await team_repository.count_name_collisions(db, data.name, slug) > 0:
            raise BadRequestError("Team name already taken.")

        team: Team = await team_repository.create(db, {"name": data.name, "slug": slug})
        await membership_repository.create(
            db,
            {
                "team_id": team.id,
                "user_id": user.id,
                "role": MembershipRole.OWNER,
                "accepted": True,
            },
        )
        logger.info("team_created", team_id=str(team.id), owner_id=str(user.id), slug=slug)

        await sync_service.upsert_team_user(team, user, MembershipRole.OWNER)
        return self._to_team_response(team)

    async def update_team(
        self,
        db: AsyncSession,
        user: User,
        data: TeamUpdate,
    ) -> TeamResponse | None:
        """팀 프로필을 수정합니다. 관리자 이상만 가능.

        Update team metadata. When the requested slug belongs to another team
        nothing is changed and None is returned.

        Raises:
            UnauthorizedError: 관리자가 아닐 때 (Caller is not an admin)
            BadRequestError: 다른 팀이 같은 이름을 사용할 때 (Name taken by another team)
        """
        if not await membership_repository.is_team_admin(db, user.id, data.id):
            raise UnauthorizedError()

        if data.slug is not None:
            conflicts = await team_repository.get_by_slug(db, data.slug)
            if any(t.id != data.id for t in conflicts):
                return None

        team: Team | None = await team_repository.get_by_id(db, data.id)
        if team is None:
            raise NotFoundError("Team not found")

        if data.name is not None and data.name != team.name:
            if await team_repository.exists(db, {"name": data.name}):
                raise BadRequestError("Team name already taken.")

        previous_name = team.name
        update_data = data.model_dump(exclude_unset=True, exclude={"id"})
        team = await team_repository.update(db, team, update_data)
        logger.info("team_updated", team_id=str(team.id), fields=sorted(update_data))

        await sync_service.update_team(previous_name, team)
        return self._to_team_response(team)

    async def delete_team(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
    ) -> None:
        """팀과 모든 멤버십을 삭제합니다. 소유자만 가능.

        Raises:
            UnauthorizedError: 소유자가 아닐 때 (Caller is not an owner)
        """
        if not await membership_repository.is_team_owner(db, user.id, team_id):
            raise UnauthorizedError()

        if settings.STRIPE_SECRET_KEY:
            await billing_service.downgrade_team_members(db, team_id)

        await membership_repository.delete_by_team(db, team_id)
        team: Team | None = await team_repository.get_by_id(db, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        team_name = team.name
        await team_repository.delete(db, team)
        logger.info("team_deleted", team_id=str(team_id), deleted_by=str(user.id))

        await sync_service.delete_team(team_name)

    async def remove_member(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
        member_id: UUID,
    ) -> None:
        """팀에서 멤버를 제거합니다.

        Admins may remove others; anyone may remove themself unless they
        are an admin or owner. Only owners may remove owners.

        Raises:
            UnauthorizedError: 권한 부족 (Caller may not remove this member)
            ForbiddenError: 관리자/소유자가 자기 자신을 제거할 때
                            (Admin or owner removing themself)
            NotFoundError: 멤버십이 없을 때 (Membership not found)
        """
        is_admin = await membership_repository.is_team_admin(db, user.id, team_id)
        if not is_admin and user.id != member_id:
            raise UnauthorizedError()
        # 소유자는 소유자만 제거 가능 — Only a team owner can remove another team owner
        if await membership_repository.is_team_owner(
            db, member_id, team_id
        ) and not await membership_repository.is_team_owner(db, user.id, team_id):
            raise UnauthorizedError()
        if user.id == member_id and is_admin:
            raise ForbiddenError("You can not remove yourself from a team you own.")

        membership: Membership | None = await membership_repository.get(
            db, member_id, team_id, with_relations=True
        )
        if membership is None:
            raise NotFoundError("Membership not found")
        removed_user: User = membership.user
        await membership_repository.delete(db, membership)
        logger.info("team_member_removed", team_id=str(team_id), member_id=str(member_id), removed_by=str(user.id))

        await sync_service.delete_team_membership(removed_user)

        if settings.HOSTED_FEATURES:
            await billing_service.remove_seat(db, team_id, member_id)

    async def invite_member(
        self,
        db: AsyncSession,
        user: User,
        data: InviteMemberInput,
    ) -> None:
        """사용자를 팀에 초대합니다.

        Invite someone to the team by username or email.

        - 일치하는 사용자가 없고 이메일 형식이면: 사용자와 대기 멤버십을 만들고
          가입 링크가 담긴 초대 메일을 발송
          (Unknown email: provision a user with a pending membership and mail
          a signup link carrying a one-week verification token)
        - 기존 사용자: 대기 멤버십을 만들고 요청 시 알림 메일 발송
          (Existing user: create a provisional membership, optionally mail them)

        Raises:
            UnauthorizedError: 관리자가 아니거나 OWNER 초대 권한이 없을 때
            NotFoundError: 팀이 없거나 사용자/이메일을 찾을 수 없을 때
            ForbiddenError: 이미 멤버이거나 초대 대기 중일 때
        """
        if not await membership_repository.is_team_admin(db, user.id, data.team_id):
            raise UnauthorizedError()
        if data.role == MembershipRole.OWNER and not await membership_repository.is_team_owner(
            db, user.id, data.team_id
        ):
            raise UnauthorizedError()

        team: Team | None = await team_repository.get_by_id(db, data.team_id)
        if team is None:
            raise NotFoundError("Team not found")

        invitee: User | None = await user_repository.get_by_username_or_email(
            db, data.username_or_email
        )

        if invitee is None:
            if not EMAIL_PATTERN.match(data.username_or_email):
                raise NotFoundError(
                    f"Invite failed because there is no corresponding user for {data.username_or_email}"
                )

            # 이메일로 사용자 생성 후 팀에 추가 — Create the user and add them to the team
            invitee = await user_repository.create(
                db, {"email": data.username_or_email, "invited_to": team.id}
            )
            await membership_repository.create(
                db, {"team_id": team.id, "user_id": invitee.id, "role": data.role}
            )

            token: str = secrets.token_hex(32)
            await user_repository.create_verification_token(
                db,
                identifier=data.username_or_email,
                token=token,
                expires=datetime.now(timezone.utc) + INVITE_TOKEN_TTL,
            )

            if user.name and team.name:
                await send_team_invite_email(
                    language=data.language,
                    from_name=user.name,
                    to=data.username_or_email,
                    team_name=team.name,
                    join_link=f"{settings.WEBAPP_URL}/auth/signup?token={token}&callbackUrl=/settings/teams",
                )
        else:
            # 대기 멤버십 생성 — Create provisional membership
            if await membership_repository.get(db, invitee.id, team.id) is not None:
                raise ForbiddenError("This user is a member of this team / has a pending invitation.")
            await membership_repository.create(
                db, {"team_id": team.id, "user_id": invitee.id, "role": data.role}
            )

            if data.send_email_invitation and user.name and team.name:
                await send_team_invite_email(
                    language=data.language,
                    from_name=user.name,
                    to=invitee.email,
                    team_name=team.name,
                    join_link=f"{settings.WEBAPP_URL}/settings/teams",
                )

        logger.info(
            "team_member_invited",
            team_id=str(team.id),
            invitee_id=str(invitee.id),
            role=data.role.value,
            invited_by=str(user.id),
        )

        if settings.HOSTED_FEATURES:
            try:
                await billing_service.add_seat(db, team.id, invitee.id)
            except BillingError as exc:
                logger.warning("add_seat_failed", team_id=str(team.id), error=str(exc))

    async def accept_or_leave(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
        accept: bool,
    ) -> None:
        """초대를 수락하거나, 거절/탈퇴합니다.

        Accept a pending invitation, or decline it / leave the team.
        Billing failures on either path are logged, not raised.

        Raises:
            NotFoundError: 멤버십이 없을 때 (No membership for the caller)
            ForbiddenError: 유일한 소유자가 떠나려 할 때 (Only owner leaving)
        """
        membership: Membership | None = await membership_repository.get(
            db, user.id, team_id, with_relations=True
        )
        if membership is None:
            raise NotFoundError("Membership not found")

        if accept:
            membership.accepted = True
            await db.flush()
            logger.info("team_invite_accepted", team_id=str(team_id), user_id=str(user.id))

            await sync_service.upsert_team_user(membership.team, user, membership.role)
            if settings.HOSTED_FEATURES:
                try:
                    await billing_service.reconcile_team_seats(db, team_id)
                except BillingError as exc:
                    logger.warning("reconcile_seats_failed", team_id=str(team_id), error=str(exc))
            return

        if membership.role == MembershipRole.OWNER and membership.accepted:
            owners = [
                m
                for m in await membership_repository.get_by_team(db, team_id)
                if m.role == MembershipRole.OWNER and m.accepted
            ]
            if len(owners) <= 1:
                raise ForbiddenError("You can not leave a team you are the only owner of.")

        role = membership.role
        await membership_repository.delete(db, membership)
        logger.info("team_left", team_id=str(team_id), user_id=str(user.id))

        # 좌석 조정을 위해 팀 소유자 조회 — Owner whose subscription seat count changes
        team_owner: Membership | None = await membership_repository.get_owner(db, team_id)

        if team_owner is not None:
            if settings.HOSTED_FEATURES:
                try:
                    await billing_service.remove_seat(db, team_id, user.id)
                except BillingError as exc:
                    logger.warning("remove_seat_failed", team_id=str(team_id), error=str(exc))
            await sync_service.upsert_team_user(team_owner.team, user, role)

    async def change_member_role(
        self,
        db: AsyncSession,
        user: User,
        data: ChangeMemberRoleInput,
    ) -> MembershipResponse:
        """멤버의 역할을 변경합니다.

        Raises:
            UnauthorizedError: 관리자가 아니거나 OWNER 부여 권한이 없을 때
            ForbiddenError: 관리자가 소유자 역할을 바꾸거나, 유일한 소유자를
                            강등하거나, 관리자가 자기 역할을 바꿀 때
            NotFoundError: 대상 멤버십이 없을 때 (Target membership not found)
        """
        if not await membership_repository.is_team_admin(db, user.id, data.team_id):
            raise UnauthorizedError()
        # OWNER 역할은 소유자만 부여 — Only owners can award owner role
        if data.role == MembershipRole.OWNER and not await membership_repository.is_team_owner(
            db, user.id, data.team_id
        ):
            raise UnauthorizedError()

        memberships = await membership_repository.get_by_team(db, data.team_id)
        target = next((m for m in memberships if m.user_id == data.member_id), None)
        mine = next((m for m in memberships if m.user_id == user.id), None)

        caller_is_admin = mine is not None and mine.role == MembershipRole.ADMIN
        if caller_is_admin and target is not None and target.role == MembershipRole.OWNER:
            raise ForbiddenError("You can not change the role of an owner if you are an admin.")
        if target is None:
            raise NotFoundError("Membership not found")

        other_owners = [
            m
            for m in memberships
            if m.role == MembershipRole.OWNER and m.accepted and m.user_id != target.user_id
        ]
        if target.role == MembershipRole.OWNER and data.role != MembershipRole.OWNER and not other_owners:
            raise ForbiddenError("You can not change the role of the only owner of a team.")

        if caller_is_admin and data.member_id == user.id:
            raise ForbiddenError("You can not change yourself to a higher role.")

        target.role = data.role
        await db.flush()
        updated: Membership | None = await membership_repository.get(
            db, data.member_id, data.team_id, with_relations=True
        )
        if updated is None:
            raise NotFoundError("Membership not found")
        logger.info(
            "team_member_role_changed",
            team_id=str(data.team_id),
            member_id=str(data.member_id),
            role=data.role.value,
            changed_by=str(user.id),
        )

        await sync_service.upsert_team_user(updated.team, updated.user, updated.role)
        return self._to_membership_response(updated)

    async def get_member_availability(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
        member_id: UUID,
        time_zone: str,
        date_from: str,
        date_to: str,
    ) -> MemberAvailabilityResponse:
        """팀 멤버의 가용 시간을 조회합니다.

        Raises:
            UnauthorizedError: 호출자가 팀 멤버가 아닐 때
            NotFoundError: 대상이 팀 멤버가 아닐 때 (Member not found)
            BadRequestError: 대상에게 사용자명이 없을 때 (Member has no username)
        """
        if not await membership_repository.is_team_member(db, user.id, team_id):
            raise UnauthorizedError()

        # 대상이 팀 멤버인지 확인 — Verify member is in team
        members = await membership_repository.get_by_team(db, team_id, with_users=True)
        member = next((m for m in members if m.user_id == member_id), None)
        if member is None:
            raise NotFoundError("Member not found")
        if not member.user.username:
            raise BadRequestError("Member doesn't have a username")

        return await availability_service.get_user_availability(
            db, member.user, date_from, date_to, time_zone
        )

    async def upgrade_team(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
    ) -> UpgradeTeamResponse:
        """팀을 유료 좌석으로 전환합니다. 호스팅 환경의 소유자만 가능.

        Raises:
            ForbiddenError: 팀 과금이 비활성일 때 (Team billing is not enabled)
            UnauthorizedError: 소유자가 아닐 때 (Caller is not an owner)
        """
        if not settings.HOSTED_FEATURES:
            raise ForbiddenError("Team billing is not enabled")
        if not await membership_repository.is_team_owner(db, user.id, team_id):
            raise UnauthorizedError()
        url = await billing_service.upgrade_team(db, user, team_id)
        return UpgradeTeamResponse(url=url)

    async def get_team_seats(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> TeamSeatsResponse:
        """팀 좌석 통계를 조회합니다."""
        return await billing_service.get_team_seat_stats(db, team_id)

    async def ensure_subscription_quantity_correctness(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
    ) -> SubscriptionQuantityResponse:
        """호출자 구독의 좌석 수량을 팀 유료 좌석 수에 맞춥니다."""
        return await billing_service.ensure_subscription_quantity_correctness(db, user, team_id)

    async def get_membership_by_user(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
        member_id: UUID,
    ) -> MembershipResponse | None:
        """본인 멤버십을 조회합니다.

        Raises:
            UnauthorizedError: 다른 사람의 멤버십일 때 (Not the caller's membership)
        """
        if user.id != member_id:
            raise UnauthorizedError("You cannot view memberships that are not your own.")

        membership: Membership | None = await membership_repository.get(db, member_id, team_id)
        if membership is None:
            return None
        return self._to_membership_response(membership)

    async def update_membership(
        self,
        db: AsyncSession,
        user: User,
        data: UpdateMembershipInput,
    ) -> MembershipResponse:
        """본인 멤버십의 대리 로그인 차단 설정을 변경합니다.

        Raises:
            UnauthorizedError: 다른 사람의 멤버십일 때 (Not the caller's membership)
            NotFoundError: 멤버십이 없을 때 (Membership not found)
        """
        if user.id != data.member_id:
            raise UnauthorizedError("You cannot edit memberships that are not your own.")

        membership: Membership | None = await membership_repository.get(db, data.member_id, data.team_id)
        if membership is None:
            raise NotFoundError("Membership not found")
        membership = await membership_repository.update(
            db, membership, {"disable_impersonation": data.disable_impersonation}
        )
        return self._to_membership_response(membership)


# 싱글턴 인스턴스 — Singleton instance
team_service: TeamService = TeamService()
