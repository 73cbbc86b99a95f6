"""Tests for the super-admin audit log endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.portal.models import AuditAction, AuditStatus, User
from src.portal.models.base import utc_now
from tests.factories import AuditLogFactory, UserFactory
from tests.helpers import bearer, create_user, login

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


@pytest.fixture
async def admin_token(client: AsyncClient, db_session: AsyncSession) -> str:
    admin = await create_user(db_session, UserFactory.super_admin())
    return (await login(client, admin.email)).json()["access_token"]


class TestListAuditLogs:
    """Tests for GET /api/v1/audit/logs."""

    async def test_consultancy_admin_is_forbidden(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        admin = await create_user(db_session, UserFactory.consultancy_admin())
        tokens = (await login(client, admin.email)).json()

        response = await client.get("/api/v1/audit/logs", headers=bearer(tokens["access_token"]))

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_lists_newest_first(
        self, client: AsyncClient, db_session: AsyncSession, admin_token: str
    ) -> None:
        response = await client.get("/api/v1/audit/logs", headers=bearer(admin_token))

        assert response.status_code == 200
        items = response.json()["items"]
        # The admin's own login is the newest entry
        assert items[0]["action"] == AuditAction.LOGIN.value
        timestamps = [item["timestamp"] for item in items]
        assert timestamps == sorted(timestamps, reverse=True)

    async def test_filters(
        self, client: AsyncClient, db_session: AsyncSession, admin_token: str, test_user: User
    ) -> None:
        db_session.add_all(
            [
                AuditLogFactory.build(
                    user_id=test_user.id,
                    action=AuditAction.PASSWORD_CHANGE.value,
                    status=AuditStatus.FAILURE.value,
                ),
                AuditLogFactory.build(
                    user_id=test_user.id, action=AuditAction.PASSWORD_CHANGE.value
                ),
                AuditLogFactory.build(action=AuditAction.PASSWORD_CHANGE.value),
            ]
        )
        await db_session.commit()

        response = await client.get(
            "/api/v1/audit/logs",
            params={"action": "password_change", "user_id": str(test_user.id), "status": "failure"},
            headers=bearer(admin_token),
        )

        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["user_id"] == str(test_user.id)

    async def test_pagination(
        self, client: AsyncClient, db_session: AsyncSession, admin_token: str
    ) -> None:
        now = utc_now()
        db_session.add_all(
            [
                AuditLogFactory.build(
                    action=AuditAction.LOGOUT.value, timestamp=now - timedelta(minutes=i)
                )
                for i in range(5)
            ]
        )
        await db_session.commit()

        first = await client.get(
            "/api/v1/audit/logs",
            params={"action": "logout", "limit": 3},
            headers=bearer(admin_token),
        )
        page = first.json()
        assert len(page["items"]) == 3
        assert page["has_more"] is True

        second = await client.get(
            "/api/v1/audit/logs",
            params={"action": "logout", "limit": 3, "cursor": page["next_cursor"]},
            headers=bearer(admin_token),
        )
        rest = second.json()
        assert len(rest["items"]) == 2
        assert rest["has_more"] is False
        seen = {item["id"] for item in page["items"] + rest["items"]}
        assert len(seen) == 5

    async def test_invalid_status_filter(self, client: AsyncClient, admin_token: str) -> None:
        response = await client.get(
            "/api/v1/audit/logs", params={"status": "maybe"}, headers=bearer(admin_token)
        )

        assert response.status_code == 400


class TestFailedLogins:
    """Tests for GET /api/v1/audit/failed-logins."""

    async def test_recent_failures_only(
        self, client: AsyncClient, db_session: AsyncSession, admin_token: str
    ) -> None:
        await login(client, "nobody@example.com", "Wrong-Password-1")
        db_session.add(
            AuditLogFactory.build(
                action=AuditAction.LOGIN_FAILED.value,
                status=AuditStatus.FAILURE.value,
                timestamp=utc_now() - timedelta(hours=30),
            )
        )
        await db_session.commit()

        response = await client.get(
            "/api/v1/audit/failed-logins", params={"hours": 24}, headers=bearer(admin_token)
        )

        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["user_email"] == "nobody@example.com"
        assert items[0]["status"] == "failure"

        wider = await client.get(
            "/api/v1/audit/failed-logins", params={"hours": 48}, headers=bearer(admin_token)
        )
        assert len(wider.json()["items"]) == 2
