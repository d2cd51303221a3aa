import threading
import time

import pytest
import requests

from tripledger.services import token_cache
from tripledger.services.token_cache import TokenCache, TokenRefreshError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_token_is_reused_until_expiry():
    clock = FakeClock()
    calls = []

    def fetcher():
        calls.append(1)
        return f"token-{len(calls)}", 3600

    cache = TokenCache(fetcher=fetcher, clock=clock)
    assert cache.get_token() == "token-1"
    clock.now += 3000
    assert cache.get_token() == "token-1"
    clock.now += 600
    assert cache.get_token() == "token-2"
    assert len(calls) == 2


def test_invalidate_forces_refresh():
    tokens = iter(["a", "b"])
    cache = TokenCache(fetcher=lambda: (next(tokens), 3600))
    assert cache.get_token() == "a"
    cache.invalidate()
    assert cache.get_token() == "b"


def test_concurrent_callers_share_one_refresh():
    calls = []
    start = threading.Event()

    def slow_fetcher():
        calls.append(1)
        time.sleep(0.05)
        return "shared", 3600

    cache = TokenCache(fetcher=slow_fetcher)
    results = []

    def worker():
        start.wait()
        results.append(cache.get_token())

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    start.set()
    for t in threads:
        t.join()

    assert results == ["shared"] * 20
    assert len(calls) == 1


def test_failed_refresh_keeps_cache_empty():
    def failing():
        raise TokenRefreshError("provider down")

    cache = TokenCache(fetcher=failing)
    with pytest.raises(TokenRefreshError):
        cache.get_token()


def test_client_credentials_fetch(monkeypatch):
    captured = {}

    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return {"access_token": "abc", "expires_in": 1799}

    def fake_post(url, data, timeout):
        captured.update(url=url, data=data, timeout=timeout)
        return FakeResponse()

    monkeypatch.setattr(token_cache.requests, "post", fake_post)
    token, expires_in = token_cache.fetch_client_credentials_token("https://auth.example/token", "id", "secret")
    assert (token, expires_in) == ("abc", 1799)
    assert captured["data"]["grant_type"] == "client_credentials"
    assert captured["timeout"] == 5


def test_client_credentials_fetch_wraps_http_errors(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(token_cache.requests, "post", fake_post)
    with pytest.raises(TokenRefreshError):
        token_cache.fetch_client_credentials_token("https://auth.example/token", "id", "secret")


def test_shared_provider_cache_uses_client_credentials(monkeypatch):
    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return {"access_token": "shared-token", "expires_in": 1799}

    monkeypatch.setattr(token_cache.settings, "PROVIDER_TOKEN_URL", "https://auth.example/token")
    monkeypatch.setattr(token_cache.requests, "post", lambda *args, **kwargs: FakeResponse())
    token_cache.provider_tokens.invalidate()
    try:
        assert token_cache.provider_tokens.get_token() == "shared-token"
    finally:
        token_cache.provider_tokens.invalidate()


def test_client_credentials_fetch_rejects_null_expiry(monkeypatch):
    class FakeResponse:
        def raise_for_status(self):
            pass

        def json(self):
            return {"access_token": "abc", "expires_in": None}

    monkeypatch.setattr(token_cache.requests, "post", lambda *args, **kwargs: FakeResponse())
    with pytest.raises(TokenRefreshError):
        token_cache.fetch_client_credentials_token("https://auth.example/token", "id", "secret")


def test_client_credentials_fetch_needs_a_token_url(monkeypatch):
    def fake_post(*args, **kwargs):
        raise AssertionError("no request expected without a token url")

    monkeypatch.setattr(token_cache.settings, "PROVIDER_TOKEN_URL", None)
    monkeypatch.setattr(token_cache.requests, "post", fake_post)
    with pytest.raises(TokenRefreshError):
        token_cache.fetch_client_credentials_token()
