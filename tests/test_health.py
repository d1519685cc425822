"""Tests for the health endpoints and the unexpected-error fallback."""

from httpx import ASGITransport, AsyncClient

from monstervault.api.dependencies import get_player_service
from monstervault.main import app


class TestHealth:
    async def test_health(self, client) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_ready(self, client) -> None:
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "connected", "templates": 18}


class TestUnexpectedErrors:
    async def test_crash_renders_unknown_failure(self, client) -> None:
        """An unexpected exception yields a 500 envelope without its message."""

        def broken_service():
            raise RuntimeError("connection string leaked")

        app.dependency_overrides[get_player_service] = broken_service
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as raw:
            response = await raw.get("/players/P1")

        assert response.status_code == 500
        body = response.json()
        assert body["outcome"] == "unknown_failure"
        assert body["failure"]["kind"] == "unknown"
        assert "leaked" not in response.text
