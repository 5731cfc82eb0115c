"""
Tests for the application factory and service wiring.
"""

import pytest
from unittest.mock import MagicMock, Mock, patch

import redis

from songquiz import (
    QuizServices,
    build_services,
    create_app,
    create_authorizer,
    create_genre_cache,
)
from songquiz.services import GenreCatalog, TrackDiscoveryService
from songquiz.spotify import (
    AuthState,
    ConsoleAuthorizer,
    LoopbackAuthorizer,
    LRUGenreCache,
    RedisGenreCache,
    SpotifyClient,
)


class TestCreateApp:
    """Tests for create_app."""

    def test_uses_injected_services(self, services):
        app = create_app("testing", services=services)
        assert app.extensions["songquiz"] is services
        assert app.config["TESTING"] is True

    def test_blueprint_registered(self, app):
        assert "main" in app.blueprints

    def test_builds_services_when_not_injected(self):
        fake = QuizServices(spotify=Mock(), genre_catalog=Mock(), discovery=Mock())
        with patch("songquiz.build_services", return_value=fake) as mock_build, \
                patch("songquiz.atexit.register") as mock_register:
            app = create_app("testing")

        mock_build.assert_called_once()
        mock_register.assert_called_once_with(fake.close)
        assert app.extensions["songquiz"] is fake

    def test_unknown_config_falls_back_to_production(self, services):
        app = create_app("staging", services=services)
        assert app.config["CONFIG_NAME"] == "production"

    def test_production_requires_client_id(self, monkeypatch):
        monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)
        with pytest.raises(ValueError, match="SPOTIFY_CLIENT_ID"):
            create_app("production")

    def test_production_requires_secret_key(self, monkeypatch):
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with patch("songquiz.build_services") as mock_build:
            with pytest.raises(ValueError, match="SECRET_KEY"):
                create_app("production")
        mock_build.assert_not_called()


class TestCreateGenreCache:
    """Tests for genre cache backend selection."""

    def test_no_redis_url(self):
        assert isinstance(create_genre_cache({}), LRUGenreCache)

    def test_redis_reachable(self):
        with patch("songquiz._create_redis_client", return_value=MagicMock()):
            cache = create_genre_cache({"REDIS_URL": "redis://localhost:6379/0"})
        assert isinstance(cache, RedisGenreCache)

    def test_redis_unreachable_falls_back(self):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        with patch("songquiz._create_redis_client", return_value=client):
            cache = create_genre_cache({"REDIS_URL": "redis://localhost:6379/0"})
        assert isinstance(cache, LRUGenreCache)


class TestCreateAuthorizer:
    """Tests for authorizer selection."""

    def test_default_is_browser(self):
        assert isinstance(create_authorizer({}), LoopbackAuthorizer)

    def test_console(self):
        assert isinstance(create_authorizer({"AUTHORIZER": "Console"}), ConsoleAuthorizer)

    def test_unknown_falls_back_to_browser(self):
        assert isinstance(create_authorizer({"AUTHORIZER": "carrier-pigeon"}), LoopbackAuthorizer)


class TestBuildServices:
    """Tests for build_services."""

    def test_wires_real_objects(self, tmp_path):
        services = build_services(
            {
                "SPOTIFY_CLIENT_ID": "test_client_id",
                "SPOTIFY_REDIRECT_URI": "http://127.0.0.1:8888/callback",
                "SECRET_KEY": "test-secret-key",
                "CREDENTIAL_STORE_PATH": str(tmp_path / "credentials.json"),
                "AUTHORIZER": "console",
            }
        )
        try:
            assert isinstance(services.spotify, SpotifyClient)
            assert isinstance(services.genre_catalog, GenreCatalog)
            assert isinstance(services.discovery, TrackDiscoveryService)
            assert services.spotify.lifecycle.state == AuthState.UNAUTHENTICATED
        finally:
            services.close()
