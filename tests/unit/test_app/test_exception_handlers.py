"""Tests for the RFC 7807 exception handlers."""

from __future__ import annotations

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
import pytest

from signal_notify.app.exception_handlers import configure_exception_handlers
from signal_notify.core.exceptions import ConflictException


class Payload(BaseModel):
    priority: int = Field(ge=0, le=100)


@pytest.fixture
async def client():
    app = FastAPI()
    configure_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ConflictException(
            detail="Only failed notifications can be retried",
            type="invalid-queue-state",
            extra={"status": "sent", "current_status": "sent"},
        )

    @app.get("/located")
    async def located():
        raise ConflictException(detail="x", instance="/custom/instance")

    @app.post("/validate")
    async def validate(payload: Payload):
        return payload

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.unit
class TestExceptionHandlers:
    async def test_app_exception(self, client):
        response = await client.get("/conflict")

        assert response.status_code == 409
        assert response.headers["content-type"] == "application/problem+json"
        body = response.json()
        assert body["type"] == "invalid-queue-state"
        assert body["title"] == "Conflict"
        assert body["detail"] == "Only failed notifications can be retried"
        assert body["instance"] == "/conflict"
        assert body["status"] == 409
        assert body["current_status"] == "sent"

    async def test_explicit_instance_is_kept(self, client):
        response = await client.get("/located")

        assert response.json()["instance"] == "/custom/instance"

    async def test_validation_error(self, client):
        response = await client.post("/validate", json={"priority": 500})

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "validation-error"
        assert body["detail"] == "Request validation failed for 1 field(s)"
        (error,) = body["errors"]
        assert error["field"] == "body.priority"
        assert error["type"] == "less_than_equal"

    async def test_unexpected_error_hides_details(self, client):
        response = await client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["type"] == "internal-error"
        assert "secret internals" not in response.text
