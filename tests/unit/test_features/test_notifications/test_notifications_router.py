"""API tests for the notification queue endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from signal_notify.core.database import generate_uuid7
from tests.utils import insert, make_preferences, make_queue_item, make_signal

QUEUE_URL = "/api/v1/notifications/queue"
ADMIN_URL = "/api/v1/notifications/admin"


def email_payload(**overrides):
    payload = {
        "user_id": "user-123",
        "channel": "email",
        "recipient": "trader@example.com",
        "subject": "BUY Signal: BTCUSD",
        "message": "BUY BTCUSD at $50000",
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
class TestEnqueueEndpoint:
    async def test_enqueue_returns_created_item(self, client):
        response = await client.post(
            QUEUE_URL,
            json=email_payload(priority=9, metadata={"source": "api"}),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["priority"] == 9
        assert body["max_retries"] == 3
        assert body["current_attempts"] == 0
        assert body["metadata"] == {"source": "api"}

    async def test_offset_schedule_is_normalized_and_due(self, client):
        due_at = (datetime.now(UTC) - timedelta(minutes=30)).replace(microsecond=0)
        local = due_at.astimezone(timezone(timedelta(hours=5)))

        response = await client.post(
            QUEUE_URL,
            json=email_payload(scheduled_for=local.isoformat()),
        )
        report = await client.post(f"{ADMIN_URL}/process")

        assert response.status_code == 201
        stored = datetime.fromisoformat(response.json()["scheduled_for"])
        assert stored.utcoffset() == timedelta(0)
        assert stored == due_at
        assert report.json()["sent"] == 1

    async def test_unknown_channel_is_problem_response(self, client):
        response = await client.post(QUEUE_URL, json=email_payload(channel="fax"))

        assert response.status_code == 422
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["type"] == "validation-error"
        assert body["instance"] == QUEUE_URL
        assert any(e["field"] == "body.channel" for e in body["errors"])


@pytest.mark.unit
class TestSignalFanoutEndpoint:
    async def test_queues_enabled_channels(self, client, session_factory):
        signal = make_signal()
        await insert(
            session_factory,
            signal,
            make_preferences(
                email_signal_alerts=True,
                email_address="trader@example.com",
                sms_signal_alerts=True,
                phone_number="+15551234567",
            ),
        )

        response = await client.post(
            f"/api/v1/notifications/signals/{signal.id}/users/user-123"
        )

        assert response.status_code == 202
        body = response.json()
        assert body["count"] == 2
        assert [q["channel"] for q in body["queued"]] == ["email", "sms"]
        assert body["queued"][0]["alert_id"] == str(signal.id)

    async def test_unknown_signal_queues_nothing(self, client):
        response = await client.post(
            f"/api/v1/notifications/signals/{generate_uuid7()}/users/user-123"
        )

        assert response.status_code == 202
        assert response.json()["count"] == 0


@pytest.mark.unit
class TestAdminEndpoints:
    async def test_list_filters_by_channel(self, client, session_factory):
        await insert(session_factory, make_queue_item(), make_queue_item(channel="sms"))

        response = await client.get(f"{ADMIN_URL}/queue", params={"channel": "sms"})

        assert response.status_code == 200
        assert [i["channel"] for i in response.json()] == ["sms"]

    async def test_list_rejects_unknown_status(self, client):
        response = await client.get(f"{ADMIN_URL}/queue", params={"status": "lost"})

        assert response.status_code == 422

    async def test_unknown_item_is_404(self, client):
        queue_id = generate_uuid7()

        response = await client.get(f"{ADMIN_URL}/queue/{queue_id}")

        assert response.status_code == 404
        body = response.json()
        assert body["type"] == "queue-item-not-found"
        assert body["queue_id"] == str(queue_id)

    async def test_retry_of_pending_item_is_409(self, client, session_factory):
        (item,) = await insert(session_factory, make_queue_item())

        response = await client.post(f"{ADMIN_URL}/queue/{item.id}/retry")

        assert response.status_code == 409
        assert response.json()["type"] == "invalid-queue-state"

    async def test_retry_of_failed_item(self, client, session_factory):
        (item,) = await insert(
            session_factory,
            make_queue_item(status="failed", current_attempts=3, last_error="down"),
        )

        response = await client.post(
            f"{ADMIN_URL}/queue/{item.id}/retry",
            json={"max_retries": 6},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["max_retries"] == 6
        assert body["last_error"] is None

    async def test_process_then_inspect_delivery_log(self, client):
        created = (await client.post(QUEUE_URL, json=email_payload())).json()

        report = await client.post(f"{ADMIN_URL}/process")
        detail = await client.get(f"{ADMIN_URL}/queue/{created['id']}")

        assert report.status_code == 200
        assert report.json()["sent"] == 1
        body = detail.json()
        assert body["status"] == "sent"
        assert body["provider_message_id"].startswith("email_demo_")
        (entry,) = body["logs"]
        assert entry["status"] == "sent"
        assert entry["provider"] == "sendgrid"

    async def test_stats(self, client, session_factory):
        await insert(
            session_factory,
            make_queue_item(),
            make_queue_item(status="failed", current_attempts=3, last_error="boom"),
        )

        response = await client.get(f"{ADMIN_URL}/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["by_status"] == {"failed": 1, "pending": 1}
        assert body["total_processed"] == 0
        assert [f["last_error"] for f in body["recent_failures"]] == ["boom"]

    async def test_process_without_processor_is_503(self, app, client):
        app.state.queue_processor = None

        response = await client.post(f"{ADMIN_URL}/process")

        assert response.status_code == 503
        assert response.json()["type"] == "queue-processor-unavailable"


@pytest.mark.unit
class TestOperationalEndpoints:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": True, "queue_processor": True}

    async def test_health_degraded_without_processor(self, app, client):
        app.state.queue_processor = None

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    async def test_metrics(self, client):
        await client.post(QUEUE_URL, json=email_payload())

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "notification_enqueued_total" in response.text
