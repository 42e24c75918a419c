"""팀 좌석 과금 서비스 — Stripe 구독의 좌석 수량 관리.

Team billing service — Keeps the team owner's Stripe subscription seat
quantity in line with the team's paid members.

Seat model:
    - 팀 소유자의 구독에는 프로 플랜 가격 항목과 좌석 가격 항목이 있음
      (The owner's subscription carries a pro price item and a per-seat item)
    - 유료 좌석 = 수락된 비소유자 멤버 중 PRO 플랜
      (Paid seats = accepted non-owner members on the PRO plan)
    - 좌석 없음 = 비소유자 멤버 중 PRO가 아닌 멤버
      (Missing seats = non-owner members not on PRO)

Every seat change funnels into ensure_subscription_quantity_correctness,
which only writes to Stripe when the stored quantity differs.
The Stripe SDK is blocking, so calls go through run_in_threadpool.
"""

from typing import Any, Callable
from uuid import UUID

import stripe
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.config import settings
from teamhub.models.team import Membership, MembershipRole
from teamhub.models.user import User, UserPlan
from teamhub.repositories.membership_repository import membership_repository
from teamhub.repositories.user_repository import user_repository
from teamhub.schemas.team import SubscriptionQuantityResponse, TeamSeatsResponse
from teamhub.utils.exceptions import NotFoundError
from teamhub.utils.logging import get_logger

logger = get_logger(__name__)

stripe.api_key = settings.STRIPE_SECRET_KEY


class BillingError(Exception):
    """Stripe 호출 실패 — Error from the billing provider."""


def _seat_counts(memberships: list[Membership]) -> tuple[int, int]:
    """(유료 좌석 수, 좌석 없는 멤버 수)를 계산합니다."""
    paid = 0
    missing = 0
    for m in memberships:
        if m.role == MembershipRole.OWNER:
            continue
        if m.user.plan == UserPlan.PRO:
            if m.accepted:
                paid += 1
        else:
            missing += 1
    return paid, missing


class TeamBillingService:
    """팀 좌석 과금 비즈니스 로직을 처리하는 서비스."""

    async def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except stripe.StripeError as exc:
            logger.error("stripe_call_failed", call=getattr(func, "__qualname__", str(func)), error=str(exc))
            raise BillingError(str(exc)) from exc

    def _seat_item(self, subscription: Any) -> Any | None:
        # StripeObject는 dict이므로 .items 대신 ["items"] 사용 (subscription.items is dict.items)
        for item in subscription["items"]["data"]:
            if item["price"]["id"] == settings.STRIPE_TEAM_SEAT_PRICE_ID:
                return item
        return None

    async def get_pro_subscription(self, customer_id: str | None) -> Any | None:
        """프로 플랜 가격 항목이 있는 활성 구독을 조회합니다.

        Return the customer's active subscription that holds the pro price,
        or None when the customer has none.
        """
        if not customer_id:
            return None
        subscriptions = await self._call(
            stripe.Subscription.list, customer=customer_id, status="active"
        )
        for subscription in subscriptions["data"]:
            if any(
                item["price"]["id"] == settings.STRIPE_PRO_PRICE_ID
                for item in subscription["items"]["data"]
            ):
                return subscription
        return None

    async def _set_seat_quantity(self, subscription: Any, quantity: int) -> None:
        item = self._seat_item(subscription)
        if quantity == 0:
            if item is not None:
                await self._call(stripe.SubscriptionItem.delete, item["id"])
        elif item is None:
            await self._call(
                stripe.SubscriptionItem.create,
                subscription=subscription["id"],
                price=settings.STRIPE_TEAM_SEAT_PRICE_ID,
                quantity=quantity,
            )
        else:
            await self._call(stripe.SubscriptionItem.modify, item["id"], quantity=quantity)
        logger.info("seat_quantity_updated", subscription=subscription["id"], quantity=quantity)

    async def get_team_seat_stats(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> TeamSeatsResponse:
        """팀 좌석 통계를 계산합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            team_id: 팀 ID (Team UUID)

        Returns:
            TeamSeatsResponse: 전체 멤버, 유료 좌석, 좌석 없는 멤버 수
        """
        memberships = await membership_repository.get_by_team(db, team_id, with_users=True)
        paid, missing = _seat_counts(memberships)
        return TeamSeatsResponse(
            total_members=len(memberships), paid_seats=paid, missing_seats=missing
        )

    async def ensure_subscription_quantity_correctness(
        self,
        db: AsyncSession,
        user: User,
        team_id: UUID,
    ) -> SubscriptionQuantityResponse:
        """구독 좌석 수량을 유료 좌석 수에 맞춥니다 (멱등).

        Set the seat item quantity of the user's subscription to the team's
        paid seat count. Calling it again with no membership change is a no-op.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 구독을 가진 사용자, 보통 팀 소유자 (Subscription holder, normally the owner)
            team_id: 팀 ID (Team UUID)

        Returns:
            SubscriptionQuantityResponse: 보정 후 수량과 변경 여부

        Raises:
            BillingError: Stripe 호출 실패 (Stripe call failed)
        """
        subscription = await self.get_pro_subscription(user.stripe_customer_id)
        if subscription is None:
            return SubscriptionQuantityResponse(quantity=0, updated=False)

        stats = await self.get_team_seat_stats(db, team_id)
        item = self._seat_item(subscription)
        current: int = item["quantity"] if item is not None else 0
        if current == stats.paid_seats:
            return SubscriptionQuantityResponse(quantity=current, updated=False)

        await self._set_seat_quantity(subscription, stats.paid_seats)
        return SubscriptionQuantityResponse(quantity=stats.paid_seats, updated=True)

    async def reconcile_team_seats(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> None:
        """팀 소유자의 구독 기준으로 좌석 수량을 보정합니다."""
        owner = await membership_repository.get_owner(db, team_id)
        if owner is None:
            return
        await self.ensure_subscription_quantity_correctness(db, owner.user, team_id)

    async def _downgrade_if_unsponsored(self, db: AsyncSession, user: User) -> None:
        # 본인 구독이 없고 다른 팀에도 속하지 않으면 FREE로 전환
        # Downgrade only users who pay nothing themselves and belong to no other team
        if user.plan == UserPlan.FREE or user.stripe_customer_id:
            return
        if await membership_repository.get_by_user(db, user.id):
            return
        user.plan = UserPlan.FREE
        await db.flush()
        logger.info("user_downgraded", user_id=str(user.id))

    async def add_seat(
        self,
        db: AsyncSession,
        team_id: UUID,
        invitee_id: UUID,
    ) -> None:
        """초대된 사용자에게 팀 좌석을 부여합니다.

        Move a FREE/TRIAL invitee to PRO and reconcile the owner's seat
        quantity. Pending invitees start counting once they accept.
        """
        invitee: User | None = await user_repository.get_by_id(db, invitee_id)
        if invitee is None:
            raise NotFoundError("Invitee not found")
        if invitee.plan != UserPlan.PRO:
            invitee.plan = UserPlan.PRO
            await db.flush()
        await self.reconcile_team_seats(db, team_id)

    async def remove_seat(
        self,
        db: AsyncSession,
        team_id: UUID,
        member_id: UUID,
    ) -> None:
        """팀을 떠난 멤버의 좌석을 해제합니다 (멤버십 삭제 후 호출).

        Release the seat of a member whose membership was already deleted.
        """
        member: User | None = await user_repository.get_by_id(db, member_id)
        if member is not None:
            await self._downgrade_if_unsponsored(db, member)
        await self.reconcile_team_seats(db, team_id)

    async def upgrade_team(
        self,
        db: AsyncSession,
        owner: User,
        team_id: UUID,
    ) -> str | None:
        """팀을 유료로 전환합니다.

        Without a pro subscription a Stripe Checkout session is created and
        its URL returned. Otherwise members missing seats move to PRO and the
        seat quantity is reconciled; None is returned.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            owner: 팀 소유자 (Team owner paying for the seats)
            team_id: 팀 ID (Team UUID)

        Returns:
            str | None: Checkout URL 또는 None (Checkout URL, or None)
        """
        memberships = await membership_repository.get_by_team(db, team_id, with_users=True)
        missing: list[User] = [
            m.user
            for m in memberships
            if m.role != MembershipRole.OWNER and m.user.plan != UserPlan.PRO
        ]

        subscription = await self.get_pro_subscription(owner.stripe_customer_id)
        if subscription is None:
            line_items: list[dict[str, Any]] = [{"price": settings.STRIPE_PRO_PRICE_ID, "quantity": 1}]
            if missing:
                line_items.append(
                    {"price": settings.STRIPE_TEAM_SEAT_PRICE_ID, "quantity": len(missing)}
                )
            members_url = f"{settings.WEBAPP_URL}/settings/teams/{team_id}/members"
            checkout_args: dict[str, Any] = {
                "mode": "subscription",
                "line_items": line_items,
                "success_url": f"{members_url}?upgraded=true",
                "cancel_url": members_url,
                "metadata": {"team_id": str(team_id), "user_id": str(owner.id)},
            }
            if owner.stripe_customer_id:
                checkout_args["customer"] = owner.stripe_customer_id
            else:
                checkout_args["customer_email"] = owner.email
            session = await self._call(stripe.checkout.Session.create, **checkout_args)
            logger.info("team_checkout_created", team_id=str(team_id), seats=len(missing))
            return session["url"]

        for user in missing:
            user.plan = UserPlan.PRO
        await db.flush()
        await self._set_seat_quantity(subscription, (await self.get_team_seat_stats(db, team_id)).paid_seats)
        logger.info("team_upgraded", team_id=str(team_id), seats=len(missing))
        return None

    async def downgrade_team_members(
        self,
        db: AsyncSession,
        team_id: UUID,
    ) -> None:
        """팀 삭제 전 멤버들의 팀 좌석을 회수합니다.

        Before a team is deleted: downgrade non-owner members the team was
        paying for and drop the owner's seat item.
        """
        memberships = await membership_repository.get_by_team(db, team_id, with_users=True)
        owner: User | None = None
        for m in memberships:
            if m.role == MembershipRole.OWNER:
                owner = owner or m.user
                continue
            if m.user.plan == UserPlan.FREE or m.user.stripe_customer_id:
                continue
            others = [o for o in await membership_repository.get_by_user(db, m.user_id) if o.team_id != team_id]
            if not others:
                m.user.plan = UserPlan.FREE
        await db.flush()

        if owner is not None:
            subscription = await self.get_pro_subscription(owner.stripe_customer_id)
            if subscription is not None:
                await self._set_seat_quantity(subscription, 0)


# 싱글턴 인스턴스 — Singleton instance
billing_service: TeamBillingService = TeamBillingService()
