"""Dashboard JSON API (integrations, sync, plan, adherence, profile, nutrition, coach, health)."""

import logging

from db_init import get_trailcoach
from flask import Blueprint, abort, jsonify, redirect, request

from trailcoach.adherence import summarize, week_adherence
from trailcoach.exceptions import ConfigurationError
from trailcoach.oauth import OAuthResult
from trailcoach.plan import next_workout
from trailcoach.profile import UserProfile, save_profile
from trailcoach.provider_status import Provider

log = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _provider_or_404(name: str) -> Provider:
    try:
        return Provider.parse(name)
    except ValueError:
        abort(404)


def _statuses(statuses) -> dict:
    return {provider.value: state.to_dict() for provider, state in statuses.items()}


def _sync_payload(result) -> dict:
    return {
        "activities": [a.to_dict() for a in result.activities],
        "integrations": _statuses(result.statuses),
    }


def _plan_payload(result) -> dict:
    return {
        "plan": result.plan.to_dict(),
        "usedFallback": result.used_fallback,
        "generated": result.generated,
    }


@api_bp.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "app": "trailcoach-web"})


@api_bp.route("/api/integrations")
def api_integrations():
    tc = get_trailcoach()
    return jsonify(_statuses(tc.states))


@api_bp.route("/api/integrations/<name>/connect")
def api_integration_connect(name: str):
    """Redirect the browser to the provider's authorization page."""
    provider = _provider_or_404(name)
    tc = get_trailcoach()
    try:
        url = tc.oauth.begin(provider)
    except ConfigurationError as e:
        return jsonify({"error": str(e), "setting": e.setting}), 400
    return redirect(url)


@api_bp.route("/api/oauth/callback")
def api_oauth_callback():
    """Single entry point for every provider's OAuth redirect."""
    tc = get_trailcoach()
    result: OAuthResult = tc.oauth.complete(request.args.to_dict())
    status = 400 if result.error else 200
    return jsonify({**result.to_dict(), "integrations": _statuses(tc.states)}), status


@api_bp.route("/api/integrations/<name>", methods=["DELETE"])
def api_integration_disconnect(name: str):
    provider = _provider_or_404(name)
    tc = get_trailcoach()
    tc.oauth.disconnect(provider)
    return jsonify(_statuses(tc.states))


@api_bp.route("/api/activities")
def api_activities():
    """The merged activity list from the last sync."""
    tc = get_trailcoach()
    return jsonify([a.to_dict() for a in tc.aggregator.activities])


@api_bp.route("/api/sync", methods=["POST"])
def api_sync():
    tc = get_trailcoach()
    return jsonify(_sync_payload(tc.aggregator.sync()))


@api_bp.route("/api/sync/<name>", methods=["POST"])
def api_sync_retry(name: str):
    provider = _provider_or_404(name)
    tc = get_trailcoach()
    return jsonify(_sync_payload(tc.aggregator.retry(provider)))


@api_bp.route("/api/plan")
def api_plan():
    tc = get_trailcoach()
    return jsonify(_plan_payload(tc.plans.ensure(tc.profile, tc.today)))


@api_bp.route("/api/plan/regenerate", methods=["POST"])
def api_plan_regenerate():
    tc = get_trailcoach()
    return jsonify(_plan_payload(tc.plans.regenerate(tc.profile, tc.today)))


@api_bp.route("/api/plan/next")
def api_plan_next():
    tc = get_trailcoach()
    session = next_workout(tc.plans.current(), tc.today)
    return jsonify({"session": session.to_dict() if session else None})


@api_bp.route("/api/plan/adherence")
def api_plan_adherence():
    """Grade the current plan against the last synced activities."""
    tc = get_trailcoach()
    plan = tc.plans.current()
    if plan is None:
        return jsonify({"error": "No training plan yet"}), 404
    rows = week_adherence(plan, tc.aggregator.activities)
    return jsonify(
        {
            "sessions": [row.to_dict() for row in rows],
            "summary": summarize(rows).to_dict(),
        }
    )


@api_bp.route("/api/profile")
def api_profile():
    tc = get_trailcoach()
    profile = tc.profile
    return jsonify({**profile.to_dict(), "weeksToRace": profile.weeks_to_race(tc.today)})


@api_bp.route("/api/profile", methods=["PUT"])
def api_profile_update():
    """Merge the posted fields into the stored profile."""
    tc = get_trailcoach()
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Profile must be a JSON object"}), 400
    try:
        profile = UserProfile.from_dict({**tc.profile.to_dict(), **body})
    except (TypeError, ValueError) as e:
        return jsonify({"error": "Invalid profile", "details": str(e)}), 400
    save_profile(tc.repository, profile)
    return jsonify({**profile.to_dict(), "weeksToRace": profile.weeks_to_race(tc.today)})


def _nutrition_payload(tc) -> dict:
    nutrition = tc.nutrition
    return {
        **nutrition.day().to_dict(),
        "totals": nutrition.totals().to_dict(),
        "remaining": nutrition.remaining().to_dict(),
    }


@api_bp.route("/api/nutrition")
def api_nutrition():
    """Today's meals with totals and what is left of the targets."""
    return jsonify(_nutrition_payload(get_trailcoach()))


@api_bp.route("/api/nutrition/meals", methods=["POST"])
def api_nutrition_log_meal():
    body = request.get_json(silent=True)
    food_log = body.get("foodLog") if isinstance(body, dict) else None
    if not food_log:
        return jsonify({"error": "Food log is required"}), 400
    tc = get_trailcoach()
    meal, _ = tc.log_meal(food_log)
    return jsonify({"meal": meal.to_dict(), **_nutrition_payload(tc)})


@api_bp.route("/api/nutrition/plan")
def api_nutrition_plan():
    tc = get_trailcoach()
    return jsonify([day.to_dict() for day in tc.nutrition_plan()])


@api_bp.route("/api/nutrition/plan/regenerate", methods=["POST"])
def api_nutrition_plan_regenerate():
    tc = get_trailcoach()
    return jsonify([day.to_dict() for day in tc.nutrition_plan(regenerate=True)])


@api_bp.route("/api/coach", methods=["POST"])
def api_coach():
    body = request.get_json(silent=True)
    query = body.get("query") if isinstance(body, dict) else None
    if not query:
        return jsonify({"error": "Query is required"}), 400
    return jsonify({"advice": get_trailcoach().ask_coach(query)})


@api_bp.route("/api/coach/status")
def api_coach_status():
    return jsonify(get_trailcoach().coach.check_connection())
