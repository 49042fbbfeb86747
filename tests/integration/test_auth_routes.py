"""Integration tests for /health and the auth endpoints."""
from contractoros.core.security import user_from_token

SIGNUP = {
    "orgName": "Acme Builders",
    "name": "Olivia Owner",
    "email": "olivia@acme.test",
    "password": "s3cret-pass",
}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_register_then_login(client):
    response = await client.post("/api/auth/register", json=SIGNUP)
    assert response.status_code == 201
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["role"] == "OWNER"
    assert body["defaultPath"] == "/dashboard"

    response = await client.post(
        "/api/auth/token", json={"email": "olivia@acme.test", "password": "s3cret-pass"}
    )
    assert response.status_code == 200
    identity = user_from_token(response.json()["accessToken"])
    assert identity.user_id == body["userId"]
    assert identity.org_id == body["orgId"]


async def test_register_duplicate_email(client):
    await client.post("/api/auth/register", json=SIGNUP)
    response = await client.post("/api/auth/register", json=SIGNUP)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


async def test_bad_credentials(client):
    response = await client.post(
        "/api/auth/token", json={"email": "nobody@acme.test", "password": "whatever1"}
    )
    assert response.status_code == 401
    assert response.json() == {
        "error": {"code": "UNAUTHORIZED", "message": "Invalid email or password"}
    }


async def test_protected_route_requires_token(client):
    response = await client.get("/api/projects")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


async def test_garbage_token_rejected(client):
    response = await client.get("/api/projects", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
