"""
Tests for the provider HTTP client.
"""

import pytest
import requests

from clinicslots.adapters import http_client as http_module
from clinicslots.adapters.http_client import BookingHttpClient
from clinicslots.domain.exceptions import ProviderFetchError


class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class TestBookingHttpClient:
    """Tests for BookingHttpClient."""

    def test_get_json_passes_timeout(self, monkeypatch):
        """Every request carries the configured timeout."""
        calls = []

        def fake_get(url, headers=None, timeout=None):
            calls.append((url, timeout))
            return FakeResponse(body={"ok": True})

        monkeypatch.setattr(http_module.requests, "get", fake_get)

        client = BookingHttpClient(timeout_seconds=3.5)

        assert client.get_json("https://example.com/slots") == {"ok": True}
        assert calls == [("https://example.com/slots", 3.5)]

    def test_post_json_sends_payload(self, monkeypatch):
        """The payload is sent as a JSON body."""
        sent = {}

        def fake_post(url, headers=None, json=None, timeout=None):
            sent.update(url=url, json=json, timeout=timeout)
            return FakeResponse(body={"slots": []})

        monkeypatch.setattr(http_module.requests, "post", fake_post)

        result = BookingHttpClient().post_json("https://example.com/a", {"provider_id": "1"})

        assert result == {"slots": []}
        assert sent == {"url": "https://example.com/a", "json": {"provider_id": "1"}, "timeout": 10.0}

    def test_error_status_raises(self, monkeypatch):
        """Test that non-success statuses raise ProviderFetchError."""
        monkeypatch.setattr(http_module.requests, "get", lambda *a, **k: FakeResponse(status_code=503))

        with pytest.raises(ProviderFetchError, match="503"):
            BookingHttpClient().get_json("https://example.com/slots")

    def test_timeout_raises(self, monkeypatch):
        """Test that a timed-out request raises ProviderFetchError."""
        def fake_get(*args, **kwargs):
            raise requests.exceptions.Timeout("read timed out")

        monkeypatch.setattr(http_module.requests, "get", fake_get)

        with pytest.raises(ProviderFetchError, match="timed out"):
            BookingHttpClient().get_json("https://example.com/slots")

    def test_invalid_json_raises(self, monkeypatch):
        """Test that a non-JSON body raises ProviderFetchError."""
        monkeypatch.setattr(http_module.requests, "get", lambda *a, **k: FakeResponse(invalid_json=True))

        with pytest.raises(ProviderFetchError, match="not valid JSON"):
            BookingHttpClient().get_json("https://example.com/slots")

    def test_non_positive_timeout_rejected(self):
        """Test that a zero timeout raises ValueError."""
        with pytest.raises(ValueError, match="greater than zero"):
            BookingHttpClient(timeout_seconds=0)
