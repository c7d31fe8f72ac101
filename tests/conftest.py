"""Shared fixtures: environment and mocked Platform API endpoints."""

import json

import httpx
import pytest

from nsclient.models import Credentials

HOSTNAME = "platform.example.com"

ENV = {
    "CLIENT_ID": "test-client",
    "CLIENT_SECRET": "s3cret",
    "SCOPE": "api://platform/.default",
    "PLATFORM_API_TENANT": "test-tenant",
    "PLATFORM_API_HOSTNAME": HOSTNAME,
    "PLATFORM_API_CLUSTER": "dev-cluster",
    "PLATFORM_API_TOKEN_URL": "https://login.example.com/{tenant}/oauth2/v2.0/token",
}

NAMESPACE_RESPONSE = {
    "message": "Namespace demo-product-test created or updated.",
    "namespace": "demo-product-test",
    "expiry": "2021-08-03T09:49:17Z",
}

TOKEN_RESPONSE = {
    "token_type": "Bearer",
    "expires_in": 3599,
    "access_token": "abc.def.ghi",
}


class MockPlatform:
    """Records requests and answers for the token and namespace endpoints."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_body: dict | str = TOKEN_RESPONSE
        self.namespace_status = 200
        self.namespace_body: dict | str = NAMESPACE_RESPONSE
        self.raise_on_namespace: Exception | None = None

    def _response(self, status: int, body: dict | str) -> httpx.Response:
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/token"):
            return self._response(self.token_status, self.token_body)
        if request.url.path == "/namespace":
            if self.raise_on_namespace is not None:
                raise self.raise_on_namespace
            return self._response(self.namespace_status, self.namespace_body)
        return httpx.Response(404, text="not found")

    @property
    def namespace_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/namespace"]

    def last_payload(self) -> dict:
        return json.loads(self.namespace_requests[-1].content)


@pytest.fixture
def platform() -> MockPlatform:
    return MockPlatform()


@pytest.fixture
def http(platform: MockPlatform):
    client = httpx.Client(transport=httpx.MockTransport(platform.handler))
    yield client
    client.close()


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> dict[str, str]:
    """Set all required environment variables, isolated from any local .env."""
    monkeypatch.chdir(tmp_path)
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)
    return dict(ENV)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        client_id="test-client",
        client_secret="s3cret",
        scope="api://platform/.default",
        tenant="test-tenant",
    )

