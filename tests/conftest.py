"""Shared fixtures: a scripted stand-in for the Polar OAuth and AccessLink APIs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Set, Tuple

import httpx
import pytest

from polar_health.config import Settings
from polar_health.stores import Credential

AUTH_BASE = "https://polar.test/v2"
ACCESSLINK_BASE = "https://accesslink.test/v3"


class FakePolar:
    """httpx handler that answers like Polar, with per-test knobs."""

    def __init__(self) -> None:
        self.token_status = 200
        self.token_payload: Dict[str, Any] = {
            "access_token": "polar-token",
            "token_type": "bearer",
            "expires_in": 3600,
            "x_user_id": 42,
        }
        self.registration_status = 200
        self.listing_status = {"activity": 200, "exercise": 200}
        self.listings: Dict[str, List[str]] = {"activity": [], "exercise": []}
        self.items: Dict[str, Tuple[int, Any]] = {}
        self.broken_urls: Set[str] = set()
        self.requests: List[httpx.Request] = []

    def add_item(self, kind: str, payload: Any, status: int = 200) -> str:
        url = f"{ACCESSLINK_BASE}/items/{kind}/{len(self.items)}"
        self.listings[kind].append(url)
        self.items[url] = (status, payload)
        return url

    def add_broken_item(self, kind: str) -> str:
        url = f"{ACCESSLINK_BASE}/items/{kind}/broken-{len(self.broken_urls)}"
        self.listings[kind].append(url)
        self.broken_urls.add(url)
        return url

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        path = request.url.path

        if url in self.broken_urls:
            raise httpx.ConnectError("connection reset", request=request)
        if url in self.items:
            status, payload = self.items[url]
            return httpx.Response(status, json=payload)

        if path == "/v2/oauth2/token" and request.method == "POST":
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_grant")
            return httpx.Response(200, json=self.token_payload)

        if path == "/v3/users" and request.method == "POST":
            if self.registration_status == 409:
                return httpx.Response(409, json={"message": "User already registered"})
            if self.registration_status >= 400:
                return httpx.Response(self.registration_status, text="registration broken")
            return httpx.Response(self.registration_status, json={"polar-user-id": 42})

        for kind, key in (("activity", "activity-log"), ("exercise", "exercises")):
            if path.endswith(f"/{kind}-transactions"):
                status = self.listing_status[kind]
                if status != 200:
                    return httpx.Response(status, text="listing broken")
                return httpx.Response(200, json={key: [{"url": u} for u in self.listings[kind]]})

        return httpx.Response(404, json={"error": f"no route for {path}"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def polar() -> FakePolar:
    return FakePolar()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        POLAR_CLIENT_ID="client-123",
        POLAR_CLIENT_SECRET="secret-456",
        POLAR_AUTH_BASE_URL=AUTH_BASE,
        ACCESSLINK_BASE_URL=ACCESSLINK_BASE,
        PUBLIC_URL="http://localhost:3000",
    )


def make_credential(user_id: str = "alice", **overrides: Any) -> Credential:
    values: Dict[str, Any] = {
        "user_id": user_id,
        "access_token": "polar-token",
        "token_type": "Bearer",
        "expires_in": 3600,
        "acquired_at": datetime.now(timezone.utc),
    }
    values.update(overrides)
    return Credential(**values)
