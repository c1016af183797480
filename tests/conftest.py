"""Pytest shared fixtures."""
import json
import pathlib
import sys
from types import SimpleNamespace

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from identity_admin.core.identity_toolkit import create_client_with_token

BASE_URL = "http://identity.test"
PROJECT_ID = "demo-project"


class StubResponse:
    def __init__(self, payload=None, status_code: int = 200, text=None, url: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeIdentityAPI:
    """Stands in for ``requests.request``, answering from per-route queues.

    Each queued entry is a payload dict (200 response), a StubResponse, or an
    exception to raise.
    """

    def __init__(self):
        self.calls = []
        self._routes = {}

    def add(self, method: str, path: str, *responses) -> None:
        self._routes.setdefault((method, path), []).extend(responses)

    def calls_to(self, method: str, path: str):
        return [call for call in self.calls if call.method == method and call.path == path]

    def __call__(self, method, url, headers=None, timeout=None, params=None, json=None, **kwargs):
        assert url.startswith(BASE_URL), f"Unexpected host in {url}"
        path = url[len(BASE_URL):]
        self.calls.append(
            SimpleNamespace(method=method, path=path, params=params, json=json, headers=headers, timeout=timeout)
        )
        queue = self._routes.get((method, path))
        if not queue:
            raise AssertionError(f"No stubbed response for {method} {path}")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        if not isinstance(response, StubResponse):
            response = StubResponse(response)
        response.url = url
        return response


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail any HTTP call a test did not stub explicitly."""

    def _unexpected(target, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {target}")

    for name in ("request", "get", "post", "put", "patch", "delete"):
        monkeypatch.setattr(requests, name, _unexpected)


@pytest.fixture()
def fake_api(monkeypatch):
    api = FakeIdentityAPI()
    monkeypatch.setattr(requests, "request", api)
    return api


@pytest.fixture()
def client():
    """Client pre-authenticated with a static token against the fake API host."""
    return create_client_with_token(PROJECT_ID, "test-token", base_url=BASE_URL)


@pytest.fixture()
def stub_response():
    return StubResponse
