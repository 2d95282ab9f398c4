"""
Shared fixtures for integration tests.

IMPORTANT: All integration tests in this project MUST:
1. Use async tests with @pytest.mark.asyncio
2. Use the `client` fixture (AsyncClient) - NOT TestClient
3. Use `await` for all HTTP calls
4. Prefix all routes with settings.API_V1_PREFIX

Example:
    @pytest.mark.asyncio
    async def test_something(client):
        response = await client.get("/health")
        assert response.status_code == 200
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from railway_preview.main import app


@pytest_asyncio.fixture
async def client():
    """
    Async test client bound directly to the ASGI app.

    Uses base_url="http://test"; no server is started.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
