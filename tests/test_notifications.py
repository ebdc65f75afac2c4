from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from money_manager.app import app
from money_manager.config import NOTIFICATION_RETENTION_DAYS
from money_manager.db import get_conn, purge_old_notifications
from money_manager.services.notifications import create_notification


def _user_id(client, headers):
    return client.get("/api/auth/me", headers=headers).json()["user"]["id"]


@pytest.fixture
def inbox(client, headers):
    user_id = _user_id(client, headers)
    with get_conn() as con:
        ids = [
            create_notification(con, user_id, "system", f"Note {i}", f"Message {i}", priority="low")
            for i in range(3)
        ]
    return ids


class TestNotifications:
    def test_list_and_unread_count(self, client, headers, inbox):
        body = client.get("/api/notifications/", headers=headers).json()
        assert body["unread_count"] == 3
        assert [n["id"] for n in body["notifications"]] == list(reversed(inbox))
        assert body["notifications"][0]["metadata"] == {}

    def test_limit(self, client, headers, inbox):
        body = client.get("/api/notifications/?limit=2", headers=headers).json()
        assert len(body["notifications"]) == 2

    def test_mark_one_read(self, client, headers, inbox):
        res = client.put(f"/api/notifications/{inbox[0]}/read", headers=headers)
        assert res.status_code == 200
        assert res.json()["is_read"] is True
        assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 2}

        unread = client.get("/api/notifications/?unread_only=true", headers=headers).json()["notifications"]
        assert inbox[0] not in [n["id"] for n in unread]

    def test_mark_all_read(self, client, headers, inbox):
        res = client.put("/api/notifications/mark-all-read", headers=headers)
        assert res.status_code == 200
        assert res.json()["updated"] == 3
        assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 0}

    def test_delete_and_clear(self, client, headers, inbox):
        assert client.delete(f"/api/notifications/{inbox[0]}", headers=headers).status_code == 200
        assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 2}

        res = client.delete("/api/notifications/", headers=headers)
        assert res.json()["deleted"] == 2
        assert client.get("/api/notifications/", headers=headers).json()["notifications"] == []

    def test_other_user_cannot_touch(self, client, other_headers, inbox):
        assert client.put(f"/api/notifications/{inbox[0]}/read", headers=other_headers).status_code == 404
        assert client.delete(f"/api/notifications/{inbox[0]}", headers=other_headers).status_code == 404
        assert client.get("/api/notifications/", headers=other_headers).json()["unread_count"] == 0


class TestRetention:
    def _backdate(self, notification_id, days):
        stamp = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        with get_conn() as con:
            con.execute("UPDATE notifications SET created_at = ? WHERE id = ?", (stamp, notification_id))

    def test_purge_removes_only_expired(self, client, headers, inbox):
        old, edge, recent = inbox
        self._backdate(old, NOTIFICATION_RETENTION_DAYS + 1)
        self._backdate(edge, NOTIFICATION_RETENTION_DAYS - 1)

        assert purge_old_notifications() == 1
        ids = [n["id"] for n in client.get("/api/notifications/", headers=headers).json()["notifications"]]
        assert sorted(ids) == sorted([edge, recent])

    def test_startup_purges(self, client, headers, inbox):
        self._backdate(inbox[0], NOTIFICATION_RETENTION_DAYS + 5)

        with TestClient(app) as restarted:
            body = restarted.get("/api/notifications/", headers=headers).json()
        assert [n["id"] for n in body["notifications"]] == [inbox[2], inbox[1]]
