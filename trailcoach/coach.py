"""Client for the backend AI proxy (``app/routes/ai.py``).

Only ``generate_plan`` raises: the plan store owns the plan fallback. Every
other call degrades to a built-in answer on any failure.
"""

import datetime
import logging
from typing import Any

import requests

from trailcoach.exceptions import AIServiceError
from trailcoach.nutrition import (
    Meal,
    NutritionPlanDay,
    fallback_nutrition_plan,
    new_meal_id,
    offline_meal,
    parse_nutrition_plan,
)
from trailcoach.plan import WeeklyPlan

log = logging.getLogger(__name__)

EMPTY_ADVICE = "I'm focusing on the trail right now, ask me again later."
OFFLINE_ADVICE = "Network error. Even coaches lose signal in the mountains sometimes."


class CoachClient:
    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        # cookies set by the relay ride along on every call
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, path: str, body: dict) -> Any:
        try:
            resp = self.session.post(f"{self.base_url}{path}", json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise AIServiceError(f"Cannot reach AI service: {e}", endpoint=path) from e
        if not resp.ok:
            raise AIServiceError(f"AI service returned HTTP {resp.status_code}", endpoint=path)
        try:
            return resp.json()
        except ValueError as e:
            raise AIServiceError(f"AI service returned invalid JSON: {e}", endpoint=path) from e

    def generate_plan(self, request: dict) -> WeeklyPlan:
        """POST the profile request and validate the returned plan."""
        path = "/api/ai/generate-plan"
        data = self._post(path, request)
        try:
            return WeeklyPlan.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise AIServiceError(f"Invalid training plan: {e}", endpoint=path) from e

    def nutrition_plan(self, focus: str) -> list[NutritionPlanDay]:
        try:
            return parse_nutrition_plan(self._post("/api/ai/nutrition-plan", {"focus": focus}))
        except (AIServiceError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.warning("Using fallback nutrition plan: %s", e)
            return fallback_nutrition_plan()

    def analyze_meal(self, food_log: str) -> Meal:
        try:
            data = self._post("/api/ai/analyze-nutrition", {"foodLog": food_log})
            return Meal.from_input(data, new_meal_id(), datetime.datetime.now().strftime("%H:%M"))
        except (AIServiceError, KeyError, TypeError, ValueError) as e:
            log.warning("Meal analysis unavailable: %s", e)
            return offline_meal()

    def coach_advice(self, query: str, context: str) -> str:
        try:
            data = self._post("/api/ai/coach-advice", {"query": query, "context": context})
        except AIServiceError as e:
            log.warning("Coach advice unavailable: %s", e)
            return OFFLINE_ADVICE
        advice = data.get("advice") if isinstance(data, dict) else None
        return advice or EMPTY_ADVICE

    def check_connection(self) -> dict:
        """Post a throw-away profile to the plan endpoint and report reachability."""
        try:
            resp = self.session.post(
                f"{self.base_url}/api/ai/generate-plan", json={"level": "test"}, timeout=self.timeout
            )
        except requests.RequestException:
            return {"status": "unavailable", "message": "Cannot connect to the server. Check your network connection."}
        if resp.ok:
            return {"status": "valid"}
        return {"status": "unavailable", "message": "AI service is temporarily unavailable"}
