"""Tests for SpotifyHTTPClient."""

import pytest
from unittest.mock import MagicMock, Mock, patch

import requests

from songquiz.spotify.http_client import (
    SpotifyHTTPClient,
    BASE_URL,
    _calculate_backoff_delay,
    MAX_RETRIES,
)
from songquiz.spotify.exceptions import (
    AuthUnavailableError,
    SpotifyAPIError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyTokenExpiredError,
    TransientNetworkError,
)


# =========================================================================
# Helpers
# =========================================================================


def _mock_response(status_code=200, json_data=None, headers=None):
    """Create a mock response object."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = json_data or {}
    resp.headers = headers or {}
    resp.text = str(json_data) if json_data else ""
    return resp


def _client(token="test-token", on_unauthorized=None):
    """Build a client whose session is a mock."""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    provider = Mock(return_value=token)
    client = SpotifyHTTPClient(
        provider, on_unauthorized=on_unauthorized, session=session
    )
    return client, session, provider


# =========================================================================
# Backoff delay
# =========================================================================


class TestCalculateBackoffDelay:
    """Tests for _calculate_backoff_delay."""

    def test_first_attempt(self):
        assert _calculate_backoff_delay(0) == 2

    def test_second_attempt(self):
        assert _calculate_backoff_delay(1) == 4

    def test_third_attempt(self):
        assert _calculate_backoff_delay(2) == 8

    def test_capped_at_max(self):
        assert _calculate_backoff_delay(10) == 16


# =========================================================================
# Token handling
# =========================================================================


class TestTokenProvider:
    """Tests for per-request token retrieval."""

    def test_token_pulled_before_each_request(self):
        client, session, provider = _client()
        session.request.return_value = _mock_response(200, {"ok": True})

        client.get("/me")
        client.get("/me")

        assert provider.call_count == 2
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer test-token"

    def test_new_token_picked_up(self):
        client, session, provider = _client()
        session.request.return_value = _mock_response(200, {})

        client.get("/me")
        provider.return_value = "rotated-token"
        client.get("/me")

        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer rotated-token"

    def test_auth_unavailable_propagates_without_request(self):
        client, session, provider = _client()
        provider.side_effect = AuthUnavailableError("declined")

        with pytest.raises(AuthUnavailableError):
            client.get("/me")
        session.request.assert_not_called()

    def test_bearer_not_stored_on_session(self):
        """The session is shared with the token endpoint."""
        client, session, _ = _client()
        session.request.return_value = _mock_response(200, {})

        client.get("/me")

        assert "Authorization" not in session.headers


# =========================================================================
# Success responses
# =========================================================================


class TestSuccessResponses:
    """Tests for successful HTTP responses."""

    def test_get_returns_json(self):
        client, session, _ = _client()
        session.request.return_value = _mock_response(200, {"genres": ["pop"]})

        result = client.get("/recommendations/available-genre-seeds")

        assert result == {"genres": ["pop"]}
        session.request.assert_called_once_with(
            "GET",
            f"{BASE_URL}/recommendations/available-genre-seeds",
            params=None,
            headers={
                "Accept": "application/json",
                "Authorization": "Bearer test-token",
            },
            timeout=30,
        )

    def test_params_forwarded(self):
        client, session, _ = _client()
        session.request.return_value = _mock_response(200, {})

        client.get("/search", params={"q": "track:*"})

        assert session.request.call_args.kwargs["params"] == {"q": "track:*"}

    def test_204_returns_none(self):
        client, session, _ = _client()
        session.request.return_value = _mock_response(204)
        assert client.get("/me") is None

    def test_invalid_json_is_transient_error(self):
        client, session, _ = _client()
        resp = _mock_response(200)
        resp.json.side_effect = ValueError("bad json")
        session.request.return_value = resp

        with pytest.raises(TransientNetworkError, match="Invalid JSON"):
            client.get("/me")


# =========================================================================
# 401 re-authorization
# =========================================================================


class TestUnauthorized:
    """Tests for the single re-authorization on 401."""

    def test_401_reauthorizes_and_retries_once(self):
        on_unauthorized = Mock()
        client, session, provider = _client(on_unauthorized=on_unauthorized)
        provider.side_effect = ["stale-token", "fresh-token"]
        session.request.side_effect = [
            _mock_response(401),
            _mock_response(200, {"id": "me"}),
        ]

        result = client.get("/me")

        assert result == {"id": "me"}
        on_unauthorized.assert_called_once_with("stale-token")
        assert session.request.call_count == 2
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer fresh-token"

    def test_second_401_raises_token_expired(self):
        on_unauthorized = Mock()
        client, session, _ = _client(on_unauthorized=on_unauthorized)
        session.request.return_value = _mock_response(401)

        with pytest.raises(SpotifyTokenExpiredError):
            client.get("/me")

        on_unauthorized.assert_called_once()
        assert session.request.call_count == 2

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_401_after_exhausted_retries_still_retried(self, mock_sleep):
        on_unauthorized = Mock()
        client, session, provider = _client(on_unauthorized=on_unauthorized)
        provider.side_effect = ["stale-token", "fresh-token"]
        session.request.side_effect = [_mock_response(500)] * MAX_RETRIES + [
            _mock_response(401),
            _mock_response(200, {"id": "me"}),
        ]

        assert client.get("/me") == {"id": "me"}
        on_unauthorized.assert_called_once_with("stale-token")
        assert session.request.call_count == MAX_RETRIES + 2
        assert mock_sleep.call_count == MAX_RETRIES

    def test_reauthorization_failure_propagates(self):
        client, session, provider = _client(on_unauthorized=Mock())
        provider.side_effect = ["stale-token", AuthUnavailableError("declined")]
        session.request.return_value = _mock_response(401)

        with pytest.raises(AuthUnavailableError):
            client.get("/me")
        assert session.request.call_count == 1


# =========================================================================
# Error responses
# =========================================================================


class TestErrorResponses:
    """Tests for non-retryable errors."""

    def test_404_raises_not_found(self):
        client, session, _ = _client()
        session.request.return_value = _mock_response(404)
        with pytest.raises(SpotifyNotFoundError):
            client.get("/artists/missing")

    def test_400_raises_api_error_with_message(self):
        client, session, _ = _client()
        session.request.return_value = _mock_response(
            400, {"error": {"status": 400, "message": "invalid id"}}
        )
        with pytest.raises(SpotifyAPIError, match="invalid id"):
            client.get("/artists/bad")

    def test_403_not_retried(self):
        client, session, _ = _client()
        session.request.return_value = _mock_response(403, {"error": {"message": "nope"}})
        with pytest.raises(SpotifyAPIError):
            client.get("/me")
        assert session.request.call_count == 1


# =========================================================================
# Retries
# =========================================================================


class TestRetries:
    """Tests for rate limit, server error and network retries."""

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_429_then_success(self, mock_sleep):
        client, session, _ = _client()
        session.request.side_effect = [
            _mock_response(429, headers={"Retry-After": "3"}),
            _mock_response(200, {"ok": True}),
        ]

        assert client.get("/me") == {"ok": True}
        mock_sleep.assert_called_once_with(3)

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_429_uses_backoff_when_larger(self, mock_sleep):
        client, session, _ = _client()
        session.request.side_effect = [
            _mock_response(429, headers={"Retry-After": "1"}),
            _mock_response(429, headers={"Retry-After": "1"}),
            _mock_response(200, {}),
        ]

        client.get("/me")

        assert [c.args[0] for c in mock_sleep.call_args_list] == [2, 4]

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_429_exhausted(self, mock_sleep):
        client, session, _ = _client()
        session.request.return_value = _mock_response(
            429, headers={"Retry-After": "7"}
        )

        with pytest.raises(SpotifyRateLimitError) as exc:
            client.get("/me")

        assert exc.value.retry_after == 7
        assert session.request.call_count == MAX_RETRIES + 1

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_5xx_then_success(self, mock_sleep):
        client, session, _ = _client()
        session.request.side_effect = [
            _mock_response(503),
            _mock_response(502),
            _mock_response(200, {"ok": True}),
        ]

        assert client.get("/me") == {"ok": True}
        assert mock_sleep.call_count == 2

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_5xx_exhausted(self, mock_sleep):
        client, session, _ = _client()
        session.request.return_value = _mock_response(500)

        with pytest.raises(SpotifyAPIError, match="Server error 500"):
            client.get("/me")
        assert session.request.call_count == MAX_RETRIES + 1

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_network_error_then_success(self, mock_sleep):
        client, session, _ = _client()
        session.request.side_effect = [
            requests.ConnectionError("reset"),
            requests.Timeout("slow"),
            _mock_response(200, {"ok": True}),
        ]

        assert client.get("/me") == {"ok": True}
        assert mock_sleep.call_count == 2

    @patch("songquiz.spotify.http_client.time.sleep")
    def test_network_error_exhausted(self, mock_sleep):
        client, session, _ = _client()
        session.request.side_effect = requests.ConnectionError("down")

        with pytest.raises(TransientNetworkError, match="Network error"):
            client.get("/me")
        assert session.request.call_count == MAX_RETRIES + 1
        assert mock_sleep.call_count == MAX_RETRIES
