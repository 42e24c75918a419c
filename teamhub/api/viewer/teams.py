"""팀 프로시저 라우터 — 팀/멤버십 원격 프로시저 엔드포인트.

Team Procedure Router — One route per team procedure.
Queries are GET with query parameters, mutations are POST with a JSON
body. Every procedure requires an authenticated caller; mutations commit
the session after the service returns.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.deps import CurrentUser
from teamhub.database import get_db
from teamhub.schemas.team import (
    AcceptOrLeaveInput,
    ChangeMemberRoleInput,
    InviteMemberInput,
    MemberAvailabilityResponse,
    MemberInput,
    MembershipResponse,
    SubscriptionQuantityResponse,
    TeamCreate,
    TeamDetailResponse,
    TeamIdInput,
    TeamListItemResponse,
    TeamResponse,
    TeamSeatsResponse,
    TeamUpdate,
    UpdateMembershipInput,
    UpgradeTeamResponse,
)
from teamhub.services.team_service import team_service

router: APIRouter = APIRouter()

DbSession = Annotated[AsyncSession, Depends(get_db)]


# === 조회 (Queries) ===

@router.get("/get", response_model=TeamDetailResponse)
async def get_team(
    team_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> TeamDetailResponse:
    """팀 상세 정보를 멤버 목록과 함께 조회합니다."""
    return await team_service.get_team(db, current_user, team_id)


@router.get("/list", response_model=list[TeamListItemResponse])
async def list_teams(
    db: DbSession,
    current_user: CurrentUser,
) -> list[TeamListItemResponse]:
    """내 팀 목록을 조회합니다 (소유자 > 관리자 > 멤버 순).

    List the caller's teams, pending invitations included.
    """
    return await team_service.list_teams(db, current_user)


@router.get("/getMemberAvailability", response_model=MemberAvailabilityResponse)
async def get_member_availability(
    team_id: UUID,
    member_id: UUID,
    date_from: str,
    date_to: str,
    db: DbSession,
    current_user: CurrentUser,
    time_zone: Annotated[str, Query(alias="timezone")],
) -> MemberAvailabilityResponse:
    """팀 멤버의 가용 시간을 조회합니다.

    Busy intervals and free working windows of a team member between
    date_from and date_to, interpreted in the given time zone.
    """
    return await team_service.get_member_availability(
        db, current_user, team_id, member_id, time_zone, date_from, date_to
    )


@router.get("/getTeamSeats", response_model=TeamSeatsResponse)
async def get_team_seats(
    team_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> TeamSeatsResponse:
    """팀 좌석 통계를 조회합니다."""
    return await team_service.get_team_seats(db, team_id)


@router.get("/getMembershipbyUser", response_model=MembershipResponse | None)
async def get_membership_by_user(
    team_id: UUID,
    member_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
) -> MembershipResponse | None:
    """본인 멤버십을 조회합니다. 없으면 null."""
    return await team_service.get_membership_by_user(db, current_user, team_id, member_id)


# === 변경 (Mutations) ===

@router.post("/create", response_model=TeamResponse, status_code=201)
async def create_team(
    data: TeamCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> TeamResponse:
    """새 팀을 생성합니다. 호출자가 소유자가 됩니다."""
    result: TeamResponse = await team_service.create_team(db, current_user, data)
    await db.commit()
    return result


@router.post("/update", response_model=TeamResponse | None)
async def update_team(
    data: TeamUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> TeamResponse | None:
    """팀 프로필을 수정합니다.

    Returns null without changes when the slug belongs to another team.
    """
    result: TeamResponse | None = await team_service.update_team(db, current_user, data)
    await db.commit()
    return result


@router.post("/delete", status_code=204)
async def delete_team(
    data: TeamIdInput,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """팀을 삭제합니다."""
    await team_service.delete_team(db, current_user, data.team_id)
    await db.commit()


@router.post("/removeMember", status_code=204)
async def remove_member(
    data: MemberInput,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """팀에서 멤버를 제거합니다."""
    await team_service.remove_member(db, current_user, data.team_id, data.member_id)
    await db.commit()


@router.post("/inviteMember", status_code=204)
async def invite_member(
    data: InviteMemberInput,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """사용자명 또는 이메일로 멤버를 초대합니다."""
    await team_service.invite_member(db, current_user, data)
    await db.commit()


@router.post("/acceptOrLeave", status_code=204)
async def accept_or_leave(
    data: AcceptOrLeaveInput,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """초대를 수락하거나 팀을 떠납니다."""
    await team_service.accept_or_leave(db, current_user, data.team_id, data.accept)
    await db.commit()


@router.post("/changeMemberRole", response_model=MembershipResponse)
async def change_member_role(
    data: ChangeMemberRoleInput,
    db: DbSession,
    current_user: CurrentUser,
) -> MembershipResponse:
    """멤버의 역할을 변경합니다."""
    result: MembershipResponse = await team_service.change_member_role(db, current_user, data)
    await db.commit()
    return result


@router.post("/upgradeTeam", response_model=UpgradeTeamResponse)
async def upgrade_team(
    data: TeamIdInput,
    db: DbSession,
    current_user: CurrentUser,
) -> UpgradeTeamResponse:
    """팀을 유료 좌석으로 전환합니다. 결제가 필요하면 Checkout URL 반환."""
    result: UpgradeTeamResponse = await team_service.upgrade_team(db, current_user, data.team_id)
    await db.commit()
    return result


@router.post("/ensureSubscriptionQuantityCorrectness", response_model=SubscriptionQuantityResponse)
async def ensure_subscription_quantity_correctness(
    data: TeamIdInput,
    db: DbSession,
    current_user: CurrentUser,
) -> SubscriptionQuantityResponse:
    """구독 좌석 수량을 팀 유료 좌석 수에 맞춥니다 (멱등)."""
    return await team_service.ensure_subscription_quantity_correctness(
        db, current_user, data.team_id
    )


@router.post("/updateMembership", response_model=MembershipResponse)
async def update_membership(
    data: UpdateMembershipInput,
    db: DbSession,
    current_user: CurrentUser,
) -> MembershipResponse:
    """본인 멤버십 설정을 변경합니다."""
    result: MembershipResponse = await team_service.update_membership(db, current_user, data)
    await db.commit()
    return result
