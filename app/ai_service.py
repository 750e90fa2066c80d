"""Gemini-backed coaching service used by the AI proxy routes.

The API key lives only in the server environment (``GEMINI_API_KEY``); the
browser and the CLI reach the model exclusively through ``routes/ai.py``.
"""

import json
import logging
import os
import re

from google import genai
from google.genai import types as genai_types

from trailcoach.exceptions import AIServiceError, ConfigurationError

log = logging.getLogger(__name__)

GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
COACH_TEMPERATURE = 0.7

SYSTEM_PROMPT = "Act as an expert ultra-trail coach and sports nutritionist."

_FENCE = re.compile(r"```(?:json)?")


def strip_fences(text: str) -> str:
    """Remove markdown code fences a model may wrap around JSON."""
    return _FENCE.sub("", text or "").strip()


class AIService:
    """Thin wrapper around ``genai.Client`` with one method per coaching task."""

    def __init__(self, api_key: str | None = None, client=None):
        if client is None:
            api_key = api_key or os.environ.get("GEMINI_API_KEY", "").strip()
            if not api_key:
                raise ConfigurationError(
                    "GEMINI_API_KEY is not defined in server environment", setting="GEMINI_API_KEY"
                )
            client = genai.Client(api_key=api_key)
        self.client = client

    def _generate(self, prompt: str, json_output: bool = False) -> str:
        contents = [genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)])]
        config = genai_types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=COACH_TEMPERATURE,
            response_mime_type="application/json" if json_output else None,
        )
        try:
            response = self.client.models.generate_content(model=GEMINI_MODEL, contents=contents, config=config)
        except Exception as e:
            log.error("Gemini request failed: %s", e)
            raise AIServiceError(str(e)) from e
        return response.text or ""

    def generate_training_plan(self, profile: dict) -> str:
        prompt = (
            f"Generate a weekly training plan based on this profile: {json.dumps(profile)}.\n"
            "Return ONLY valid JSON without markdown code blocks, shaped as "
            '{"weekNumber": int, "focus": str, "sessions": [{"day": "Monday", "date": "YYYY-MM-DD", '
            '"type": "Rest|Easy|Tempo|Intervals|Long Run|Hill Repeats|Cross Train", '
            '"distanceTarget": km, "description": str}]} with seven sessions, Monday first, '
            "starting on currentWeekStart."
        )
        return strip_fences(self._generate(prompt, json_output=True))

    def nutrition_plan(self, focus: str) -> str:
        prompt = (
            f"Create a one-day meal plan for an ultra-trail runner. Training focus: {focus}.\n"
            'Return ONLY a JSON array of days: [{"day": str, "meals": {"Breakfast": meal, "Lunch": meal, '
            '"Dinner": meal, "Snack": meal}}] where meal is '
            '{"name": str, "description": str, "calories": number, "macros": {"p": g, "c": g, "f": g}}.'
        )
        return strip_fences(self._generate(prompt, json_output=True))

    def analyze_nutrition(self, food_log: str) -> str:
        prompt = (
            f"Estimate the nutrition of this food log: {food_log!r}.\n"
            'Return ONLY JSON: {"name": str, "calories": number, "protein": g, "carbs": g, "fats": g, '
            '"type": "Breakfast|Lunch|Dinner|Snack"}.'
        )
        return strip_fences(self._generate(prompt, json_output=True))

    def coach_advice(self, query: str, context: str) -> str:
        prompt = f"Context about the athlete: {context}\n\nAthlete question: {query}\n\nAnswer briefly."
        return self._generate(prompt).strip()


_service: AIService | None = None


def get_ai_service() -> AIService:
    """Process-wide AIService, created on first use."""
    global _service
    if _service is None:
        _service = AIService()
    return _service


def reset_ai_service() -> None:
    global _service
    _service = None
