"""Strava OAuth relay routes for the trailcoach web app.

The Strava client secret stays on the server: clients post the authorization
code (or a refresh token) here and the relay talks to Strava with stravalib.
Tokens are returned in the body and also set as HttpOnly cookies.
"""

import logging
import os

from flask import Blueprint, jsonify, make_response, redirect, request
from stravalib.client import Client

log = logging.getLogger(__name__)

strava_bp = Blueprint("auth_strava", __name__)

ACCESS_COOKIE_MAX_AGE = 3600  # 1 hour
REFRESH_COOKIE_MAX_AGE = 30 * 24 * 3600  # 30 days


def _get_strava_client_credentials() -> tuple[str, str]:
    """Return the operator's (client_id, client_secret) from the environment.

    Strava client ids are numeric; anything else counts as not configured.
    """
    client_id = os.environ.get("STRAVA_CLIENT_ID", "").strip()
    client_secret = os.environ.get("STRAVA_CLIENT_SECRET", "").strip()
    if client_id and not client_id.isdigit():
        log.error("STRAVA_CLIENT_ID is not numeric")
        client_id = ""
    return client_id, client_secret


def _frontend_url() -> str:
    return os.environ.get("FRONTEND_URL", "http://localhost:5173").rstrip("/")


def _set_token_cookies(response, token_data: dict):
    secure = os.environ.get("TRAILCOACH_ENV") == "production"
    response.set_cookie(
        "access_token",
        str(token_data["access_token"]),
        max_age=ACCESS_COOKIE_MAX_AGE,
        httponly=True,
        secure=secure,
        samesite="Strict",
    )
    if token_data.get("refresh_token"):
        response.set_cookie(
            "refresh_token",
            str(token_data["refresh_token"]),
            max_age=REFRESH_COOKIE_MAX_AGE,
            httponly=True,
            secure=secure,
            samesite="Strict",
        )
    return response


def _token_json(token_info) -> dict:
    return {
        "access_token": token_info["access_token"],
        "refresh_token": token_info.get("refresh_token"),
        "expires_at": token_info.get("expires_at"),
    }


def _exchange_code(code: str) -> dict:
    client_id, client_secret = _get_strava_client_credentials()
    client = Client()
    token_info = client.exchange_code_for_token(client_id=int(client_id), client_secret=client_secret, code=code)
    return _token_json(token_info)


@strava_bp.route("/api/auth/strava", methods=["POST"])
def api_auth_strava_exchange():
    """Exchange an authorization code for tokens."""
    code = (request.get_json(silent=True) or {}).get("code")
    if not code:
        return jsonify({"error": "Authorization code is required"}), 400

    client_id, client_secret = _get_strava_client_credentials()
    if not client_id or not client_secret:
        log.error("Strava credentials not configured")
        return jsonify({"error": "Server configuration error"}), 500

    try:
        token_data = _exchange_code(code)
    except Exception as e:
        log.error("Strava Auth Error: %s", e)
        return jsonify({"error": "Failed to authenticate with Strava", "details": str(e)}), 500

    return _set_token_cookies(make_response(jsonify(token_data)), token_data)


@strava_bp.route("/api/auth/strava/refresh", methods=["POST"])
def api_auth_strava_refresh():
    """Refresh tokens; the refresh token comes from the cookie or the body."""
    refresh_token = request.cookies.get("refresh_token") or (request.get_json(silent=True) or {}).get("refresh_token")
    if not refresh_token:
        return jsonify({"error": "Refresh token is required"}), 400

    client_id, client_secret = _get_strava_client_credentials()
    if not client_id or not client_secret:
        log.error("Strava credentials not configured")
        return jsonify({"error": "Server configuration error"}), 500

    try:
        client = Client()
        token_info = client.refresh_access_token(
            client_id=int(client_id),
            client_secret=client_secret,
            refresh_token=refresh_token,
        )
        token_data = _token_json(token_info)
    except Exception as e:
        log.error("Strava Refresh Error: %s", e)
        return jsonify({"error": "Failed to refresh Strava token", "details": str(e)}), 500

    return _set_token_cookies(make_response(jsonify(token_data)), token_data)


@strava_bp.route("/api/auth/strava/callback")
def api_auth_strava_callback():
    """Browser redirect target: exchange the code, set cookies, go to the dashboard."""
    frontend = _frontend_url()
    code = request.args.get("code")
    if not code:
        return redirect(f"{frontend}/login?error=missing_code")

    client_id, client_secret = _get_strava_client_credentials()
    if not client_id or not client_secret:
        log.error("Strava credentials not configured")
        return redirect(f"{frontend}/login?error=server_config")

    try:
        token_data = _exchange_code(code)
    except Exception as e:
        log.error("Strava Callback Error: %s", e)
        return redirect(f"{frontend}/login?error=auth_failed")

    return _set_token_cookies(redirect(f"{frontend}/dashboard"), token_data)


@strava_bp.route("/api/auth/logout", methods=["POST"])
def api_auth_logout():
    response = make_response(jsonify({"message": "Logged out successfully"}))
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return response


@strava_bp.route("/api/auth/check")
def api_auth_check():
    if not request.cookies.get("access_token"):
        return jsonify({"authenticated": False}), 401
    return jsonify({"authenticated": True})
