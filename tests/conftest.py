"""Pytest configuration and fixtures."""

import threading
from datetime import datetime, timedelta, timezone
from urllib.parse import unquote

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from githubapp import AppConfig


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FakeGitHub:
    """In-memory GitHub Apps API served through httpx.MockTransport."""

    def __init__(
        self,
        installations: dict[str, int],
        clock=None,
        orgs: dict[str, int] | None = None,
        repos: dict[str, int] | None = None,
    ):
        # login -> installation id, for users, orgs and "owner/repo"
        self.installations = installations
        self.orgs = orgs or {}
        self.repos = repos or {}
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.token_ttl = timedelta(hours=1)
        self.fail = False
        self.lookups = 0
        self.exchanges = 0
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def _installation(self, installation_id: int, login: str, type_: str) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "id": installation_id,
                "app_id": 1234,
                "account": {"login": login, "id": 1, "type": type_},
                "target_type": type_,
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            raise httpx.ConnectError("network down", request=request)
        with self._lock:
            self.requests.append(request)
        # Route on the raw path so escaped "/" stays inside its segment
        raw_path = request.url.raw_path.decode().split("?")[0]
        parts = [unquote(p) for p in raw_path.strip("/").split("/")]
        not_found = httpx.Response(404, json={"message": "Not Found"})

        if request.method == "GET" and len(parts) == 3 and parts[0] == "users" and parts[2] == "installation":
            login = parts[1]
            with self._lock:
                self.lookups += 1
            if login not in self.installations:
                return not_found
            return self._installation(self.installations[login], login, "User")

        if request.method == "GET" and len(parts) == 3 and parts[0] == "orgs" and parts[2] == "installation":
            org = parts[1]
            if org not in self.orgs:
                return not_found
            return self._installation(self.orgs[org], org, "Organization")

        if request.method == "GET" and len(parts) == 4 and parts[0] == "repos" and parts[3] == "installation":
            full_name = f"{parts[1]}/{parts[2]}"
            if full_name not in self.repos:
                return not_found
            return self._installation(self.repos[full_name], parts[1], "User")

        if request.method == "GET" and len(parts) == 3 and parts[:2] == ["app", "installations"]:
            known = {**self.installations, **self.orgs, **self.repos}
            for login, installation_id in known.items():
                if str(installation_id) == parts[2]:
                    return self._installation(installation_id, login.split("/")[0], "User")
            return not_found

        if request.method == "POST" and len(parts) == 4 and parts[3] == "access_tokens":
            installation_id = parts[2]
            with self._lock:
                self.exchanges += 1
                n = self.exchanges
            expires_at = self.clock() + self.token_ttl
            return httpx.Response(
                201,
                json={
                    "token": f"ghs_{installation_id}_{n}",
                    "expires_at": expires_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
                    "permissions": {"contents": "read"},
                },
            )

        if request.method == "GET" and parts == ["app"]:
            return httpx.Response(
                200, json={"id": 1234, "slug": "test-app", "name": "Test App"}
            )

        if request.method == "GET" and parts == ["installation", "repositories"]:
            return httpx.Response(
                200,
                json={"authorization": request.headers.get("Authorization")},
            )

        return not_found


@pytest.fixture(scope="session")
def private_key_pem() -> bytes:
    """PEM encoded RSA private key."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def public_key(private_key_pem):
    key = serialization.load_pem_private_key(private_key_pem, password=None)
    return key.public_key()


@pytest.fixture(scope="session")
def ec_private_key_pem() -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app_config(private_key_pem) -> AppConfig:
    return AppConfig(app_id="1234", private_key=private_key_pem)


@pytest.fixture
def fake_github_factory():
    return FakeGitHub


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub(
        {"alice": 42, "bob": 7},
        orgs={"acme": 99},
        repos={"acme/widgets": 99},
    )
