import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import make_employer, make_job
from udyoga_setu.api.routes.realtime_routes import _serve
from udyoga_setu.services.realtime import ChangeFeed


def next_event(sub):
    return asyncio.wait_for(sub.queue.get(), timeout=1)


class TestChangeFeed:
    def test_events_reach_matching_subscribers(self):
        feed = ChangeFeed()

        async def scenario():
            mine = feed.subscribe(["applications", "job_applications"], company_id="c1")
            other = feed.subscribe(["applications"], company_id="c2")
            admin = feed.subscribe(["applications"])
            jobs_only = feed.subscribe(["jobs"], company_id="c1")

            delivered = feed.publish("applications", "INSERT", new={"id": "a1"}, company_id="c1")

            event = await next_event(mine)
            admin_event = await next_event(admin)
            return delivered, event, admin_event, other.queue.empty(), jobs_only.queue.empty()

        delivered, event, admin_event, other_empty, jobs_empty = asyncio.run(scenario())

        assert delivered == 2
        assert event["type"] == "change"
        assert event["table"] == "applications"
        assert event["event"] == "INSERT"
        assert event["new"] == {"id": "a1"}
        assert event["old"] is None
        assert event["commit_timestamp"]
        assert admin_event == event
        assert other_empty and jobs_empty

    def test_order_is_preserved(self):
        feed = ChangeFeed()

        async def scenario():
            sub = feed.subscribe(["applications"], company_id="c1")
            for i in range(3):
                feed.publish("applications", "UPDATE", new={"n": i}, company_id="c1")
            return [(await next_event(sub))["new"]["n"] for _ in range(3)]

        assert asyncio.run(scenario()) == [0, 1, 2]

    def test_unsubscribe(self):
        feed = ChangeFeed()

        async def scenario():
            sub = feed.subscribe(["applications"], company_id="c1")
            feed.unsubscribe(sub)
            feed.unsubscribe(sub)
            return feed.subscriber_count(), feed.publish("applications", "DELETE", old={"id": "x"}, company_id="c1")

        assert asyncio.run(scenario()) == (0, 0)

    def test_closed_loop_is_skipped(self):
        feed = ChangeFeed()

        async def scenario():
            feed.subscribe(["applications"], company_id="c1")

        asyncio.run(scenario())
        assert feed.publish("applications", "INSERT", new={}, company_id="c1") == 0


class BrokenSocket:
    """Socket whose sends fail while the client stays silent."""

    def __init__(self):
        self.sent = 0

    async def send_json(self, data):
        self.sent += 1
        raise RuntimeError("connection reset")

    async def receive_text(self):
        await asyncio.sleep(3600)


class TestServe:
    def test_failed_send_ends_the_connection(self, caplog):
        feed = ChangeFeed()
        socket = BrokenSocket()

        async def scenario():
            sub = feed.subscribe(["applications"], company_id="c1")
            feed.publish("applications", "INSERT", new={"id": "a1"}, company_id="c1")
            await asyncio.wait_for(_serve(socket, sub), timeout=1)

        asyncio.run(scenario())

        assert socket.sent == 1
        assert "connection reset" in caplog.text

class TestApplicationsSocket:
    def test_subscribed_snapshot_then_changes(self, client, employer, job):
        existing = client.post("/api/applications", json={
            "job_id": job["id"], "applicant_name": "Kavya", "applicant_phone": "9000011111",
        }).json()["id"]

        with client.websocket_connect(f"/api/realtime/applications?token={employer['token']}") as ws:
            assert ws.receive_json() == {"type": "status", "status": "SUBSCRIBED"}
            snapshot = ws.receive_json()
            assert snapshot["type"] == "snapshot"
            assert [a["id"] for a in snapshot["applications"]] == [existing]

            new_id = client.post("/api/applications", json={
                "job_id": job["id"], "applicant_name": "Ramesh", "applicant_phone": "9000022222",
            }).json()["id"]
            inserted = ws.receive_json()
            assert inserted["event"] == "INSERT"
            assert inserted["table"] == "applications"
            assert inserted["new"]["id"] == new_id

            client.put(f"/api/applications/{new_id}/status", json={"status": "shortlisted"},
                       headers=employer["headers"])
            updated = ws.receive_json()
            assert updated["event"] == "UPDATE"
            assert updated["new"]["status"] == "interview_scheduled"

            client.delete(f"/api/applications/{new_id}", headers=employer["headers"])
            deleted = ws.receive_json()
            assert deleted["event"] == "DELETE"
            assert deleted["old"]["id"] == new_id

    def test_other_company_events_are_not_forwarded(self, client, employer, job):
        other = make_employer(client, email="owner@silk.in", company_name="Silk House")
        other_job = make_job(client, other, title="Silk Weaver")

        with client.websocket_connect(f"/api/realtime/applications?token={other['token']}") as ws:
            ws.receive_json()
            assert ws.receive_json()["applications"] == []
            client.post("/api/applications", json={
                "job_id": job["id"], "applicant_name": "Kavya", "applicant_phone": "9000011111",
            })
            own = client.post("/api/applications", json={
                "job_id": other_job["id"], "applicant_name": "Suresh", "applicant_phone": "9000033333",
            }).json()["id"]

            assert ws.receive_json()["new"]["id"] == own

    def test_missing_token_is_refused(self, client):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/api/realtime/applications"):
                pass
        assert exc.value.code == 1008

    def test_employer_without_company_is_refused(self, client):
        client.post("/api/auth/register", json={"email": "new@firm.in", "password": "password123"})
        token = client.post("/api/auth/login", json={"email": "new@firm.in", "password": "password123"}).json()
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/api/realtime/applications?token={token['access_token']}"):
                pass


class TestNotificationsSocket:
    def test_admin_sees_decision_notifications(self, client, employer, job, admin_headers):
        app_id = client.post("/api/applications", json={
            "job_id": job["id"], "applicant_name": "Kavya", "applicant_phone": "9000011111",
        }).json()["id"]
        admin_token = admin_headers["Authorization"].split()[1]

        with client.websocket_connect(f"/api/realtime/notifications?token={admin_token}") as ws:
            assert ws.receive_json()["status"] == "SUBSCRIBED"
            client.put(f"/api/applications/{app_id}/status", json={"status": "approved"},
                       headers=employer["headers"])
            event = ws.receive_json()

        assert event["table"] == "notifications"
        assert event["new"]["notification_type"] == "approved"
        assert event["new"]["application_id"] == app_id

    def test_employer_without_company_is_refused(self, client):
        client.post("/api/auth/register", json={"email": "new@firm.in", "password": "password123"})
        token = client.post("/api/auth/login", json={"email": "new@firm.in", "password": "password123"}).json()
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/api/realtime/notifications?token={token['access_token']}"):
                pass
