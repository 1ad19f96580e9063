import json

import pytest
import requests

from appstle_proxy import ProxyConfig, create_app


ALLOWED_ORIGIN = "https://honsama.com"


def make_response(status=200, body=None):
    resp = requests.Response()
    resp.status_code = status
    resp.encoding = "utf-8"
    if isinstance(body, (dict, list)):
        resp._content = json.dumps(body).encode()
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = (body or "").encode()
    return resp


class FakeUpstream:
    """Stands in for requests.Session.request and records every outbound call."""

    def __init__(self):
        self.calls = []
        self._queue = []

    def reply(self, status=200, body=None):
        self._queue.append(make_response(status, body))

    def raise_error(self, exc):
        self._queue.append(exc)

    def handle(self, session, method, url, **kwargs):
        prepared = requests.Request(method, url, params=kwargs.get("params")).prepare()
        self.calls.append({
            "method": method,
            "url": url,
            "full_url": prepared.url,
            "headers": dict(session.headers),
            **kwargs,
        })
        outcome = self._queue.pop(0) if self._queue else make_response(200, {})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()

    def request(session, method, url, **kwargs):
        return fake.handle(session, method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", request)
    return fake


@pytest.fixture
def config():
    return ProxyConfig(
        appstle_api_key="test-appstle-key",
        shopify_api_key="test-client-id",
        shopify_api_secret="test-client-secret",
        app_url="https://proxy.example.com",
        rate_limit="1000 per minute",
    )


@pytest.fixture
def client(config, upstream):
    app = create_app(config)
    app.config["TESTING"] = True
    return app.test_client()
