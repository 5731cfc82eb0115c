import os
import atexit
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from flask import Flask
import redis

from config import config, validate_required_env_vars

logger = logging.getLogger(__name__)


@dataclass
class QuizServices:
    """Everything the routes need, built once per app."""

    spotify: Any
    genre_catalog: Any
    discovery: Any

    def close(self) -> None:
        self.spotify.close()


def _create_redis_client(redis_url: str) -> redis.Redis:
    """
    Create a Redis client from URL.

    Raises:
        redis.ConnectionError: If connection fails.
    """
    return redis.from_url(redis_url, decode_responses=False)


def create_genre_cache(app_config: Mapping[str, Any]):
    """
    Pick the genre cache backend.

    Uses Redis when REDIS_URL is configured and reachable, otherwise a
    bounded in-process LRU.
    """
    from songquiz.spotify.cache import LRUGenreCache, RedisGenreCache

    redis_url = app_config.get("REDIS_URL")
    if redis_url:
        try:
            client = _create_redis_client(redis_url)
            client.ping()
            logger.info(
                "Redis genre cache configured: %s", redis_url.split("@")[-1]
            )
            return RedisGenreCache(
                client,
                key_prefix=app_config.get("CACHE_KEY_PREFIX", "songquiz:cache:"),
                genre_ttl=app_config.get("GENRE_CACHE_TTL", 86400),
            )
        except redis.RedisError as e:
            logger.warning(
                "Redis connection failed: %s. Falling back to in-process cache.", e
            )
    return LRUGenreCache(capacity=app_config.get("GENRE_CACHE_CAPACITY", 2048))


def create_authorizer(app_config: Mapping[str, Any]):
    from songquiz.spotify.authorizer import ConsoleAuthorizer, LoopbackAuthorizer

    kind = (app_config.get("AUTHORIZER") or "browser").lower()
    if kind == "console":
        return ConsoleAuthorizer()
    if kind != "browser":
        logger.warning("Unknown AUTHORIZER %r, using browser login", kind)
    return LoopbackAuthorizer(timeout=app_config.get("AUTH_TIMEOUT", 300))


def build_services(app_config: Mapping[str, Any]) -> QuizServices:
    """Construct the Spotify client and quiz services from config values."""
    from songquiz.services import GenreCatalog, TrackDiscoveryService
    from songquiz.spotify import (
        EncryptedFileCredentialStore,
        SpotifyClient,
        SpotifyCredentials,
    )

    credentials = SpotifyCredentials.from_flask_config(app_config)
    store = EncryptedFileCredentialStore(
        os.path.expanduser(app_config["CREDENTIAL_STORE_PATH"]),
        app_config["SECRET_KEY"],
    )
    scopes = app_config.get("SPOTIFY_SCOPES")

    spotify = SpotifyClient(
        credentials,
        store=store,
        authorizer=create_authorizer(app_config),
        scopes=scopes.split() if scopes else None,
        timeout=app_config.get("HTTP_TIMEOUT", 30),
    )
    genre_catalog = GenreCatalog(spotify.api, cache=create_genre_cache(app_config))
    discovery = TrackDiscoveryService(
        spotify.lifecycle,
        spotify.api,
        genre_catalog,
        verify_batch_size=app_config.get("GENRE_VERIFY_BATCH_SIZE", 10),
    )
    return QuizServices(
        spotify=spotify, genre_catalog=genre_catalog, discovery=discovery
    )


def create_app(config_name=None, services: Optional[QuizServices] = None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Key into ``config.config``; defaults to FLASK_ENV.
        services: Prebuilt services (tests inject fakes here).
    """
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "production")

    if not isinstance(config_name, str) or config_name not in config:
        config_name = "production"

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Creating app with config: %s", config_name)

    if services is None:
        try:
            validate_required_env_vars()
            logger.info("Environment validation passed")
        except ValueError as e:
            logger.error("Environment validation failed: %s", str(e))
            if config_name == "production":
                raise

        logger.info("SPOTIFY_REDIRECT_URI: %s", app.config.get("SPOTIFY_REDIRECT_URI"))
        services = build_services(app.config)
        atexit.register(services.close)

    app.extensions["songquiz"] = services

    from songquiz.routes import main
    from songquiz.error_handlers import register_error_handlers

    app.register_blueprint(main)
    register_error_handlers(app)

    return app
