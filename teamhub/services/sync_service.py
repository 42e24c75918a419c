"""Close.com CRM 동기화 서비스.

Close.com CRM sync service. Teams map to leads (matched by name) and team
members map to contacts on that lead (matched by email, title = role).

Sync is best-effort: without CLOSECOM_API_KEY every call is a no-op, and
HTTP failures and malformed responses are logged instead of failing the team
procedure.

API Documentation: https://developer.close.com/
"""

from typing import Any

import httpx

from teamhub.config import settings
from teamhub.models.team import MembershipRole, Team
from teamhub.models.user import User
from teamhub.utils.logging import get_logger

logger = get_logger(__name__)

# 네트워크 오류 외에 형식이 깨진 응답 본문도 포함
# Besides network failures, covers malformed response bodies
SYNC_ERRORS = (httpx.HTTPError, ValueError, KeyError)


class CloseComSyncService:
    """Close.com REST API와 팀/멤버 정보를 동기화하는 서비스."""

    TIMEOUT_SECONDS = 10.0

    @property
    def enabled(self) -> bool:
        return bool(settings.CLOSECOM_API_KEY)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        # Close.com은 API 키를 Basic 인증의 사용자명으로 사용 (API key as basic-auth username)
        async with httpx.AsyncClient(
            base_url=settings.CLOSECOM_API_URL,
            auth=(settings.CLOSECOM_API_KEY, ""),
            timeout=self.TIMEOUT_SECONDS,
        ) as client:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
            if not response.content:
                return {}
            body = response.json()
            if not isinstance(body, dict):
                raise ValueError(f"Unexpected Close.com response for {method} {path}")
            return body

    async def _find_lead(self, name: str) -> dict[str, Any] | None:
        body = await self._request(
            "GET", "/lead/", params={"query": f'name:"{name}"', "_fields": "id,name"}
        )
        return next((lead for lead in body.get("data", []) if lead.get("name") == name), None)

    async def _get_or_create_lead(self, name: str) -> dict[str, Any]:
        lead = await self._find_lead(name)
        if lead is None:
            lead = await self._request("POST", "/lead/", json={"name": name})
        return lead

    async def _find_contact(self, email: str) -> dict[str, Any] | None:
        body = await self._request(
            "GET", "/contact/", params={"query": f'email:"{email}"', "_fields": "id,lead_id,emails"}
        )
        contacts: list[dict[str, Any]] = body.get("data", [])
        return contacts[0] if contacts else None

    async def upsert_team_user(self, team: Team, user: User, role: MembershipRole) -> None:
        """팀 리드 아래에 사용자 연락처를 생성하거나 갱신합니다.

        Create or update the user's contact under the team's lead.

        Args:
            team: 팀 (Team mapped to a lead)
            user: 사용자 (User mapped to a contact)
            role: 멤버십 역할 (Stored as the contact title)
        """
        if not self.enabled:
            return
        try:
            lead = await self._get_or_create_lead(team.name)
            contact = await self._find_contact(user.email)
            payload: dict[str, Any] = {"lead_id": lead["id"], "title": role.value}
            if contact is None:
                payload["name"] = user.name or user.email
                payload["emails"] = [{"email": user.email, "type": "office"}]
                await self._request("POST", "/contact/", json=payload)
            else:
                await self._request("PUT", f"/contact/{contact['id']}/", json=payload)
        except SYNC_ERRORS as exc:
            logger.warning("closecom_sync_failed", action="upsert_team_user", team=team.name, error=str(exc))

    async def update_team(self, previous_name: str, team: Team) -> None:
        """팀 이름 변경을 리드에 반영합니다."""
        if not self.enabled:
            return
        try:
            lead = await self._find_lead(previous_name)
            if lead is None:
                await self._request("POST", "/lead/", json={"name": team.name})
            elif previous_name != team.name:
                await self._request("PUT", f"/lead/{lead['id']}/", json={"name": team.name})
        except SYNC_ERRORS as exc:
            logger.warning("closecom_sync_failed", action="update_team", team=team.name, error=str(exc))

    async def delete_team(self, team_name: str) -> None:
        """팀 리드를 삭제합니다."""
        if not self.enabled:
            return
        try:
            lead = await self._find_lead(team_name)
            if lead is not None:
                await self._request("DELETE", f"/lead/{lead['id']}/")
        except SYNC_ERRORS as exc:
            logger.warning("closecom_sync_failed", action="delete_team", team=team_name, error=str(exc))

    async def delete_team_membership(self, user: User) -> None:
        """팀에서 제거된 사용자의 연락처를 삭제합니다."""
        if not self.enabled:
            return
        try:
            contact = await self._find_contact(user.email)
            if contact is not None:
                await self._request("DELETE", f"/contact/{contact['id']}/")
        except SYNC_ERRORS as exc:
            logger.warning("closecom_sync_failed", action="delete_team_membership", error=str(exc))


# 싱글턴 인스턴스 — Singleton instance
sync_service: CloseComSyncService = CloseComSyncService()
