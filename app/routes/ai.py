"""AI proxy routes: the only path from clients to the generative model."""

import json
import logging

from ai_service import get_ai_service
from flask import Blueprint, jsonify, request

from trailcoach.exceptions import AIServiceError, ConfigurationError

log = logging.getLogger(__name__)

ai_bp = Blueprint("ai", __name__)


def _service_or_error():
    try:
        return get_ai_service(), None
    except ConfigurationError as e:
        log.error("AI service unavailable: %s", e)
        return None, (jsonify({"error": "AI service is not configured", "details": str(e)}), 503)


def _json_or_text(text: str, key: str):
    """Parsed JSON when the model returned JSON, else ``{key: text}``."""
    try:
        return jsonify(json.loads(text))
    except ValueError:
        return jsonify({key: text})


@ai_bp.route("/api/ai/generate-plan", methods=["POST"])
def generate_plan():
    """Generate a weekly training plan from the posted profile."""
    profile = request.get_json(silent=True)
    if not profile or not isinstance(profile, dict):
        return (
            jsonify(
                {
                    "error": "User profile is required",
                    "details": "Please provide at least some training preferences",
                }
            ),
            400,
        )
    service, error = _service_or_error()
    if error:
        return error
    try:
        plan = service.generate_training_plan(profile)
    except AIServiceError as e:
        log.error("Training Plan Generation Error: %s", e)
        return jsonify({"error": "Failed to generate training plan", "details": str(e)}), 500
    return _json_or_text(plan, "plan")


@ai_bp.route("/api/ai/nutrition-plan", methods=["POST"])
def nutrition_plan():
    data = request.get_json(silent=True) or {}
    service, error = _service_or_error()
    if error:
        return error
    try:
        plan = service.nutrition_plan(str(data.get("focus") or "General training"))
    except AIServiceError as e:
        log.error("Nutrition Plan Error: %s", e)
        return jsonify({"error": "Failed to generate nutrition plan", "details": str(e)}), 500
    return _json_or_text(plan, "plan")


@ai_bp.route("/api/ai/analyze-nutrition", methods=["POST"])
def analyze_nutrition():
    data = request.get_json(silent=True) or {}
    food_log = str(data.get("foodLog") or "").strip()
    if not food_log:
        return jsonify({"error": "foodLog is required"}), 400
    service, error = _service_or_error()
    if error:
        return error
    try:
        meal = service.analyze_nutrition(food_log)
    except AIServiceError as e:
        log.error("Nutrition Analysis Error: %s", e)
        return jsonify({"error": "Failed to analyze nutrition", "details": str(e)}), 500
    return _json_or_text(meal, "analysis")


@ai_bp.route("/api/ai/coach-advice", methods=["POST"])
def coach_advice():
    data = request.get_json(silent=True) or {}
    query = str(data.get("query") or "").strip()
    if not query:
        return jsonify({"error": "query is required"}), 400
    service, error = _service_or_error()
    if error:
        return error
    try:
        advice = service.coach_advice(query, str(data.get("context") or ""))
    except AIServiceError as e:
        log.error("Coach Advice Error: %s", e)
        return jsonify({"error": "Failed to get coach advice", "details": str(e)}), 500
    return jsonify({"advice": advice})
