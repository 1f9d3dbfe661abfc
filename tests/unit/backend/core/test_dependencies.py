"""
Unit Tests for Request Dependencies.

Client address resolution behind (and without) a reverse proxy.
"""

from unittest.mock import MagicMock

import pytest

from adminui.backend.core.config import get_app_config
from adminui.backend.core.dependencies import get_client_ip


def _request(peer: str | None, forwarded: str | None = None) -> MagicMock:
    request = MagicMock()
    request.client = MagicMock(host=peer) if peer else None
    request.headers = {"x-forwarded-for": forwarded} if forwarded is not None else {}
    return request


@pytest.fixture
def proxies(monkeypatch):
    def trust(*entries: str) -> None:
        monkeypatch.setattr(get_app_config().security, "trusted_proxies", list(entries))

    trust()
    return trust


class TestGetClientIp:
    def test_peer_without_header(self, proxies):
        assert get_client_ip(_request("203.0.113.5")) == "203.0.113.5"

    def test_header_from_untrusted_peer_is_ignored(self, proxies):
        assert get_client_ip(_request("203.0.113.5", "10.0.0.1")) == "203.0.113.5"

    def test_trusted_proxy_forwards_client(self, proxies):
        proxies("127.0.0.1")

        assert get_client_ip(_request("127.0.0.1", "198.51.100.7")) == "198.51.100.7"

    def test_client_supplied_hops_are_skipped(self, proxies):
        proxies("127.0.0.1")

        # The proxy appends the real peer; anything left of it came from the client
        request = _request("127.0.0.1", "10.9.9.9, 198.51.100.7")

        assert get_client_ip(request) == "198.51.100.7"

    def test_proxy_chain_by_cidr(self, proxies):
        proxies("127.0.0.1", "172.16.0.0/12")

        request = _request("127.0.0.1", "198.51.100.7, 172.20.0.3")

        assert get_client_ip(request) == "198.51.100.7"

    def test_trusted_peer_without_header(self, proxies):
        proxies("127.0.0.1")

        assert get_client_ip(_request("127.0.0.1")) == "127.0.0.1"

    def test_missing_client(self, proxies):
        assert get_client_ip(_request(None, "198.51.100.7")) == "unknown"
