"""
Test application startup and shutdown
"""
from unittest.mock import AsyncMock, patch

import pytest

from app.main import app, lifespan


@pytest.mark.asyncio
async def test_lifespan_connects_and_disconnects():
    connect = AsyncMock()
    disconnect = AsyncMock()

    with patch("app.main.connect_to_mongo", connect), \
            patch("app.main.disconnect_from_mongo", disconnect):
        async with lifespan(app):
            connect.assert_awaited_once()
            disconnect.assert_not_called()

    disconnect.assert_awaited_once()


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to PetStock API"}
