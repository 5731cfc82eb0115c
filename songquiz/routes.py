"""
Flask routes for the quiz API.

This module handles HTTP requests and responses only. Track discovery,
genre lookups, and credential handling are delegated to the services
registered on the app by ``create_app``.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from songquiz.schemas import parse_random_track_request
from songquiz.services import (
    DIFFICULTY_BANDS,
    NoTracksFound,
    difficulty_explanation,
)

logger = logging.getLogger(__name__)
main = Blueprint("main", __name__)


def get_services():
    """Return the QuizServices bundle attached to the current app."""
    return current_app.extensions["songquiz"]


# =============================================================================
# Health
# =============================================================================


@main.route("/health")
def health():
    services = get_services()
    return jsonify(
        {
            "status": "ok",
            "authenticated": services.spotify.lifecycle.is_authenticated,
        }
    )


# =============================================================================
# Authentication
# =============================================================================


@main.route("/auth/status")
def auth_status():
    lifecycle = get_services().spotify.lifecycle
    token_info = lifecycle.token_info
    return jsonify(
        {
            "success": True,
            "state": lifecycle.state.value,
            "authenticated": lifecycle.is_authenticated,
            "expires_at": token_info.expires_at if token_info else None,
        }
    )


@main.route("/auth/login", methods=["POST"])
def login():
    """Obtain a usable credential, prompting the host to log in if needed."""
    lifecycle = get_services().spotify.lifecycle
    token_info = lifecycle.ensure_valid_credential()
    logger.info("Spotify login confirmed")
    return jsonify(
        {
            "success": True,
            "state": lifecycle.state.value,
            "expires_at": token_info.expires_at,
        }
    )


@main.route("/auth/logout", methods=["POST"])
def logout():
    get_services().spotify.lifecycle.logout()
    return jsonify({"success": True, "message": "Logged out of Spotify."})


# =============================================================================
# Catalog
# =============================================================================


@main.route("/api/genres")
def list_genres():
    genres = get_services().genre_catalog.available_genres()
    return jsonify({"success": True, "genres": genres})


@main.route("/api/genres/popular")
def list_popular_genres():
    genres = get_services().genre_catalog.popular_genres()
    return jsonify({"success": True, "genres": genres})


@main.route("/api/difficulty")
def difficulty_info():
    return jsonify(
        {
            "success": True,
            "bands": {
                label.value: {"min": low, "max": high}
                for label, (low, high) in DIFFICULTY_BANDS.items()
            },
            "explanation": difficulty_explanation(),
        }
    )


@main.route("/api/tracks/random", methods=["POST"])
def random_track():
    """
    Pick a random track for the next round.

    Returns 200 with the track, or 404 with ``no_tracks`` and the filters
    that were tried so the client can offer to relax them.
    """
    body = request.get_json(silent=True)
    filters = parse_random_track_request(body).to_filters()

    result = get_services().discovery.get_random_track(filters)

    if isinstance(result, NoTracksFound):
        return (
            jsonify(
                {
                    "success": False,
                    "no_tracks": True,
                    "message": "No tracks found for the selected filters.",
                    **result.to_dict(),
                }
            ),
            404,
        )

    return jsonify({"success": True, "track": result.to_dict()})
