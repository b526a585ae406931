"""
Shared helpers for newsdesk examples.

Handles the health check and authentication (register + login) so each
example can focus on its specific workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  newsdesk serve")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database:    {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Live feed:   {health['connections']} connection(s)")

    if health["database"] != "ok":
        print("\nERROR: Database is not reachable. Check NEWSDESK_DATABASE_URL.")
        sys.exit(1)


def authenticate(role: str = "author") -> tuple[str, str]:
    """Register a fresh user and login, returning (token, username).

    Uses a unique email per run so examples are repeatable.
    """
    run_id = uuid.uuid4().hex[:8]
    username = f"demo_{run_id}"
    email = f"demo-{run_id}@example.com"
    password = "demo-password-123"

    resp = httpx.post(
        f"{BASE}/auth/register",
        json={"username": username, "email": email, "password": password, "role": role},
        timeout=10,
    )
    if resp.status_code != 201:
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)

    resp = httpx.post(
        f"{BASE}/auth/login",
        json={"email": email, "password": password},
        timeout=10,
    )
    if resp.status_code != 200:
        print(f"ERROR: Login failed: {resp.status_code} {resp.text}")
        sys.exit(1)

    return resp.json()["access_token"], username


def create_client(role: str = "author") -> tuple[httpx.Client, str]:
    """Check backend, authenticate, and return (client with auth headers, username)."""
    check_backend()
    token, username = authenticate(role)
    print(f"  Auth:        ✓ ({role} {username})")
    client = httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )
    return client, username
