import os
from dotenv import load_dotenv

load_dotenv()

REQUIRED_ENV_VARS = ['SPOTIFY_CLIENT_ID', 'SECRET_KEY']


def validate_required_env_vars():
    """
    Ensure the environment carries the Spotify client id and the app secret.

    Raises:
        ValueError: Listing every missing variable.
    """
    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )


class Config:
    """Base configuration."""
    # Also keys the credential store cipher; never defaulted.
    SECRET_KEY = os.getenv('SECRET_KEY')

    # Spotify PKCE client
    SPOTIFY_CLIENT_ID = os.getenv('SPOTIFY_CLIENT_ID')
    SPOTIFY_REDIRECT_URI = os.getenv(
        'SPOTIFY_REDIRECT_URI', 'http://127.0.0.1:8888/callback'
    )
    SPOTIFY_SCOPES = os.getenv('SPOTIFY_SCOPES')

    # Credential persistence
    CREDENTIAL_STORE_PATH = os.getenv(
        'CREDENTIAL_STORE_PATH',
        os.path.join(os.path.expanduser('~'), '.songquiz', 'credentials.json'),
    )

    # Interactive login: "browser" (loopback redirect) or "console"
    AUTHORIZER = os.getenv('AUTHORIZER', 'browser')
    AUTH_TIMEOUT = int(os.getenv('AUTH_TIMEOUT', 300))

    # Genre caching: Redis when REDIS_URL is set, in-process LRU otherwise
    REDIS_URL = os.getenv('REDIS_URL')
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'songquiz:cache:')
    GENRE_CACHE_TTL = int(os.getenv('GENRE_CACHE_TTL', 86400))
    GENRE_CACHE_CAPACITY = int(os.getenv('GENRE_CACHE_CAPACITY', 2048))

    # Catalog requests
    HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', 30))
    GENRE_VERIFY_BATCH_SIZE = int(os.getenv('GENRE_VERIFY_BATCH_SIZE', 10))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Application settings
    DEBUG = False
    TESTING = False
    PORT = int(os.getenv('PORT', 8000))
    HOST = os.getenv('HOST', '0.0.0.0')


class ProdConfig(Config):
    """Production configuration."""
    CONFIG_NAME = 'production'


class DevConfig(Config):
    """Development configuration."""
    CONFIG_NAME = 'development'
    DEBUG = True
    HOST = 'localhost'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class TestConfig(Config):
    """Testing configuration."""
    CONFIG_NAME = 'testing'
    TESTING = True
    DEBUG = True
    SECRET_KEY = 'test-secret-key'
    SPOTIFY_CLIENT_ID = 'test_client_id'
    SPOTIFY_REDIRECT_URI = 'http://127.0.0.1:8888/callback'
    REDIS_URL = None


# Dictionary for easy config selection
config = {
    'development': DevConfig,
    'production': ProdConfig,
    'testing': TestConfig,
    'default': DevConfig
}
