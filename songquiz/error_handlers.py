"""
Global Flask error handlers.

Provides consistent error responses across all endpoints by catching
Spotify-layer exceptions and Pydantic validation errors.
"""

import logging
from flask import jsonify
from pydantic import ValidationError

from songquiz.spotify.exceptions import (
    AuthUnavailableError,
    MissingVerifierError,
    SpotifyAPIError,
    SpotifyAuthError,
    SpotifyRateLimitError,
)

logger = logging.getLogger(__name__)


def json_error_response(message: str, status_code: int, category: str = "error"):
    """Create a standardized JSON error response."""
    return (
        jsonify({"success": False, "message": message, "category": category}),
        status_code,
    )


def register_error_handlers(app):
    """
    Register global error handlers with the Flask app.

    Args:
        app: The Flask application instance.
    """

    # =========================================================================
    # Pydantic Validation Errors (400)
    # =========================================================================

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """Handle Pydantic validation errors."""
        errors_list = []
        for err in error.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            msg = err["msg"]
            errors_list.append(f"{field}: {msg}" if field else msg)

        message = "; ".join(errors_list) if errors_list else "Validation failed"
        logger.warning(f"Validation error: {message}")
        return json_error_response(message, 400)

    # =========================================================================
    # Authentication Errors (401)
    # =========================================================================

    @app.errorhandler(AuthUnavailableError)
    def handle_auth_unavailable(error: AuthUnavailableError):
        """Handle declined or failed Spotify login."""
        logger.warning(f"Spotify auth unavailable: {error}")
        return json_error_response(
            "Spotify login required. Please log in again.", 401, "auth"
        )

    @app.errorhandler(MissingVerifierError)
    def handle_missing_verifier(error: MissingVerifierError):
        """Handle a login attempt whose PKCE verifier vanished."""
        logger.error(f"PKCE verifier missing: {error}")
        return json_error_response(
            "Login was interrupted. Please try again.", 401, "auth"
        )

    @app.errorhandler(SpotifyAuthError)
    def handle_spotify_auth_error(error: SpotifyAuthError):
        """Handle other token failures."""
        logger.warning(f"Spotify auth error: {error}")
        return json_error_response(
            "Session expired. Please log in again.", 401, "auth"
        )

    # =========================================================================
    # Upstream Errors (502 / 503)
    # =========================================================================

    @app.errorhandler(SpotifyRateLimitError)
    def handle_rate_limit(error: SpotifyRateLimitError):
        """Handle Spotify rate limiting that outlasted our retries."""
        logger.warning(f"Spotify rate limit: {error}")
        response, status = json_error_response(
            "Spotify is busy. Please try again shortly.", 503
        )
        if error.retry_after:
            response.headers["Retry-After"] = str(error.retry_after)
        return response, status

    @app.errorhandler(SpotifyAPIError)
    def handle_spotify_api_error(error: SpotifyAPIError):
        """Handle Spotify API failures."""
        logger.error(f"Spotify API error: {error}")
        return json_error_response("Spotify request failed.", 502)

    # =========================================================================
    # HTTP Error Codes
    # =========================================================================

    @app.errorhandler(400)
    def handle_bad_request(error):
        """Handle 400 Bad Request."""
        return json_error_response("Bad request.", 400)

    @app.errorhandler(404)
    def handle_not_found(error):
        """Handle 404 Not Found."""
        return json_error_response("Resource not found.", 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        """Handle 405 Method Not Allowed."""
        return json_error_response("Method not allowed.", 405)

    @app.errorhandler(500)
    def handle_internal_error(error):
        """Handle 500 Internal Server Error."""
        logger.error(f"Internal server error: {error}")
        return json_error_response("An unexpected error occurred.", 500)

    logger.info("Global error handlers registered")
