"""Tests for CSRF tokens and session identification."""

from starlette.requests import Request

from cancelflow.security.csrf import (
    CsrfProtector,
    get_client_ip,
    session_key,
)
from cancelflow.security.store import InMemoryStore
from tests.conftest import FakeClock


def make_request(headers: dict[str, str] | None = None, client=("10.0.0.9", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [
            (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
        ],
        "client": client,
    }
    return Request(scope)


class TestClientIdentity:
    """Tests for get_client_ip and session_key."""

    def test_forwarded_for_first_hop(self) -> None:
        request = make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.5"

    def test_real_ip(self) -> None:
        request = make_request({"X-Real-IP": " 198.51.100.7 "})
        assert get_client_ip(request) == "198.51.100.7"

    def test_socket_address(self) -> None:
        assert get_client_ip(make_request()) == "10.0.0.9"

    def test_unknown_without_client(self) -> None:
        assert get_client_ip(make_request(client=None)) == "unknown"

    def test_session_key_combines_agent_and_ip(self) -> None:
        request = make_request({"User-Agent": "Mozilla/5.0"})
        assert session_key(request) == "Mozilla/5.0-10.0.0.9"


class TestCsrfProtector:
    """Tests for CsrfProtector."""

    def test_generate_is_64_hex_chars(self) -> None:
        token = CsrfProtector.generate()
        assert len(token) == 64
        int(token, 16)
        assert CsrfProtector.generate() != token

    def test_issued_token_validates_repeatedly(self, clock: FakeClock) -> None:
        csrf = CsrfProtector(InMemoryStore(clock=clock))
        token = csrf.issue("session-a")
        assert csrf.validate("session-a", token) is True
        assert csrf.validate("session-a", token) is True

    def test_token_bound_to_session(self, clock: FakeClock) -> None:
        csrf = CsrfProtector(InMemoryStore(clock=clock))
        token = csrf.issue("session-a")
        assert csrf.validate("session-b", token) is False

    def test_wrong_or_missing_token(self, clock: FakeClock) -> None:
        csrf = CsrfProtector(InMemoryStore(clock=clock))
        csrf.issue("session-a")
        assert csrf.validate("session-a", "0" * 64) is False
        assert csrf.validate("session-a", None) is False
        assert csrf.validate("session-a", "") is False

    def test_non_ascii_token_is_a_mismatch(self, clock: FakeClock) -> None:
        csrf = CsrfProtector(InMemoryStore(clock=clock))
        csrf.issue("session-a")
        assert csrf.validate("session-a", "\xe9abc") is False
        assert csrf.validate("session-a", "\udce9") is False

    def test_valid_for_thirty_minutes(self, clock: FakeClock) -> None:
        csrf = CsrfProtector(InMemoryStore(clock=clock))
        token = csrf.issue("session-a")
        clock.advance(30 * 60 - 1)
        assert csrf.validate("session-a", token) is True
        clock.advance(2)
        assert csrf.validate("session-a", token) is False

    def test_reissue_replaces_token(self, clock: FakeClock) -> None:
        csrf = CsrfProtector(InMemoryStore(clock=clock))
        old = csrf.issue("session-a")
        new = csrf.issue("session-a")
        assert csrf.validate("session-a", new) is True
        assert csrf.validate("session-a", old) is False

    def test_sweep_removes_expired(self, clock: FakeClock) -> None:
        store = InMemoryStore(clock=clock)
        csrf = CsrfProtector(store, ttl=60)
        csrf.issue("a")
        clock.advance(61)
        csrf.issue("b")
        assert csrf.sweep() == 1
        assert len(store) == 1
