"""
Test authentication endpoints
"""
import pytest
from app.core.config import settings


@pytest.mark.asyncio
async def test_signup(client):
    """Test user signup"""
    response = await client.post(
        "/api/v1/auth/signup",
        json={
            "name": "  Marta   Ruiz ",
            "email": "test@example.com",
            "password": "testpassword123"
        }
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "test@example.com"
    assert data["user"]["name"] == "Marta Ruiz"
    assert data["expires_in"] == settings.JWT_EXPIRATION_MINUTES * 60
    assert "password_hash" not in data["user"]


@pytest.mark.asyncio
async def test_signup_duplicate_email(client, created_user):
    """Test signup with duplicate email"""
    response = await client.post(
        "/api/v1/auth/signup",
        json={
            "name": "User Two",
            "email": created_user.email,
            "password": "password456"
        }
    )
    assert response.status_code == 400
    assert "already registered" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_signup_short_password(client):
    response = await client.post(
        "/api/v1/auth/signup",
        json={"name": "Corto", "email": "corto@example.com", "password": "123"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login(client, created_user, sample_user_data):
    """Test user login"""
    response = await client.post(
        "/api/v1/auth/login",
        json={
            "email": sample_user_data["email"],
            "password": sample_user_data["password"]
        }
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["user"]["id"] == created_user.id


@pytest.mark.asyncio
async def test_login_wrong_password(client, created_user):
    """Test login with wrong password"""
    response = await client.post(
        "/api/v1/auth/login",
        json={
            "email": created_user.email,
            "password": "wrongpassword"
        }
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user(client, created_user, auth_headers):
    """Test getting current user info"""
    response = await client.get("/api/v1/auth/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["email"] == created_user.email


@pytest.mark.asyncio
async def test_get_current_user_invalid_token(client):
    response = await client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


@pytest.mark.asyncio
async def test_get_current_user_without_token(client):
    response = await client.get("/api/v1/auth/me")

    assert response.status_code in (401, 403)
