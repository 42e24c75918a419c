"""외부 연동 및 유틸리티 테스트.

External integration and utility tests — Close.com sync, invitation email,
translations, slugs and request-log masking.
"""

from unittest.mock import AsyncMock

import httpx
import pytest
from slugify import slugify

from teamhub.config import settings
from teamhub.middleware.axiom_logging import _mask_dict
from teamhub.models.team import MembershipRole, Team
from teamhub.models.user import User
from teamhub.services.sync_service import sync_service
from teamhub.utils.email import send_team_invite_email
from teamhub.utils.i18n import get_translation


@pytest.fixture
def closecom(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Close.com 동기화를 켜고 HTTP 요청을 가로챕니다."""
    monkeypatch.setattr(settings, "CLOSECOM_API_KEY", "api_test")
    request = AsyncMock()
    monkeypatch.setattr(sync_service, "_request", request)
    return request


def _team() -> Team:
    return Team(name="Acme", slug="acme")


def _user() -> User:
    return User(email="mia@example.com", name="Mia Member")


class TestCloseComSync:
    """Close.com 동기화 테스트."""

    async def test_disabled_without_api_key(self, monkeypatch: pytest.MonkeyPatch):
        request = AsyncMock()
        monkeypatch.setattr(sync_service, "_request", request)
        await sync_service.upsert_team_user(_team(), _user(), MembershipRole.MEMBER)
        await sync_service.delete_team("Acme")
        request.assert_not_awaited()

    async def test_upsert_creates_lead_and_contact(self, closecom: AsyncMock):
        """리드와 연락처가 없으면 둘 다 생성."""
        closecom.side_effect = [
            {"data": []},            # GET /lead/
            {"id": "lead_1"},        # POST /lead/
            {"data": []},            # GET /contact/
            {"id": "cont_1"},        # POST /contact/
        ]
        await sync_service.upsert_team_user(_team(), _user(), MembershipRole.ADMIN)
        method, path = closecom.await_args_list[-1].args
        assert (method, path) == ("POST", "/contact/")
        assert closecom.await_args_list[-1].kwargs["json"] == {
            "lead_id": "lead_1",
            "title": "ADMIN",
            "name": "Mia Member",
            "emails": [{"email": "mia@example.com", "type": "office"}],
        }

    async def test_upsert_updates_existing_contact(self, closecom: AsyncMock):
        closecom.side_effect = [
            {"data": [{"id": "lead_1", "name": "Acme"}]},
            {"data": [{"id": "cont_1", "lead_id": "lead_1"}]},
            {},
        ]
        await sync_service.upsert_team_user(_team(), _user(), MembershipRole.OWNER)
        assert closecom.await_args_list[-1].args == ("PUT", "/contact/cont_1/")

    async def test_rename_team(self, closecom: AsyncMock):
        closecom.side_effect = [{"data": [{"id": "lead_1", "name": "Old"}]}, {}]
        await sync_service.update_team("Old", _team())
        assert closecom.await_args_list[-1].args == ("PUT", "/lead/lead_1/")
        assert closecom.await_args_list[-1].kwargs["json"] == {"name": "Acme"}

    async def test_http_errors_are_logged_not_raised(self, closecom: AsyncMock):
        """동기화 실패는 프로시저를 실패시키지 않는다."""
        closecom.side_effect = httpx.ConnectError("connection refused")
        await sync_service.delete_team("Acme")
        await sync_service.delete_team_membership(_user())

    async def test_non_json_body_is_logged_not_raised(self, monkeypatch: pytest.MonkeyPatch):
        """JSON이 아닌 2xx 응답도 프로시저를 실패시키지 않는다."""
        monkeypatch.setattr(settings, "CLOSECOM_API_KEY", "api_test")
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, text="<html>maintenance</html>")

        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            httpx, "AsyncClient",
            lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
        )
        await sync_service.upsert_team_user(_team(), _user(), MembershipRole.MEMBER)
        await sync_service.update_team("Old", _team())
        assert len(calls) == 2

    async def test_missing_lead_id_is_logged_not_raised(self, closecom: AsyncMock):
        """리드 응답에 id가 없어도 예외를 올리지 않는다."""
        closecom.side_effect = [{"data": []}, {"name": "Acme"}, {"data": []}]
        await sync_service.upsert_team_user(_team(), _user(), MembershipRole.MEMBER)
        assert closecom.await_count == 3


class TestInviteEmail:
    """초대 메일 테스트."""

    async def test_skipped_without_smtp(self, monkeypatch: pytest.MonkeyPatch):
        send = AsyncMock()
        monkeypatch.setattr("teamhub.utils.email.aiosmtplib.send", send)
        await send_team_invite_email("en", "Olivia", "mia@example.com", "Acme", "https://app.test/join")
        send.assert_not_awaited()

    async def test_localized_invite(self, monkeypatch: pytest.MonkeyPatch):
        """언어별 제목과 가입 링크가 포함된 메일 발송."""
        monkeypatch.setattr(settings, "SMTP_HOST", "smtp.test")
        send = AsyncMock()
        monkeypatch.setattr("teamhub.utils.email.aiosmtplib.send", send)

        await send_team_invite_email("es-MX", "Olivia", "mia@example.com", "Acme", "https://app.test/join?token=abc")

        message = send.await_args.args[0]
        assert message["To"] == "mia@example.com"
        assert message["Subject"] == "Olivia te invitó a unirte al equipo Acme"
        plain = message.get_payload()[0].get_payload(decode=True).decode("utf-8")
        assert "https://app.test/join?token=abc" in plain
        assert send.await_args.kwargs["hostname"] == "smtp.test"


class TestTranslations:
    def test_known_language(self):
        assert get_translation("de")["accept_invitation"] == "Einladung annehmen"

    def test_regional_variant_falls_back_to_base(self):
        assert get_translation("fr_CA") is get_translation("fr")

    def test_unknown_language_falls_back_to_english(self):
        assert get_translation("pt-BR") is get_translation("en")
        assert get_translation(None) is get_translation("en")


class TestSlugify:
    @pytest.mark.parametrize("name, slug", [
        ("Sales & Marketing", "sales-marketing"),
        ("  Équipe Été ", "equipe-ete"),
        ("team_one.two", "team-one-two"),
        ("--Dashes--", "dashes"),
    ])
    def test_slugify(self, name: str, slug: str):
        assert slugify(name) == slug


class TestRequestLogMasking:
    def test_masks_sensitive_keys(self):
        masked = _mask_dict({
            "team_id": "t1",
            "username_or_email": "mia@example.com",
            "nested": {"api_key": "secret", "role": "ADMIN"},
        })
        assert masked == {
            "team_id": "t1",
            "username_or_email": "***",
            "nested": {"api_key": "***", "role": "ADMIN"},
        }
