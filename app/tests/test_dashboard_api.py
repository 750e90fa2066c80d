"""Tests for the dashboard JSON API."""

import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from db_init import set_trailcoach
from main import app

from trailcoach.activity import Activity, ActivityType
from trailcoach.core import Trailcoach
from trailcoach.exceptions import ActivityFetchError, AIServiceError
from trailcoach.nutrition import Meal, MealType, fallback_nutrition_plan
from trailcoach.plan import fallback_plan
from trailcoach.provider_status import Provider
from trailcoach.storage import MemoryRepository
from trailcoach.token_store import TokenPayload

_CONFIG = {
    "home_timezone": "UTC",
    "relay_url": "http://relay.test",
    "ai_base_url": "http://ai.test",
    "providers": {
        "strava": {"client_id": "12345", "redirect_uri": "https://app.example/strava"},
        "garmin": {"client_id": "", "auth_url": "https://garmin.example/oauth/authorize"},
    },
}


@pytest.fixture
def tc(monkeypatch):
    for name in ("STRAVA_CLIENT_ID", "STRAVA_REDIRECT_URI", "GARMIN_CLIENT_ID", "GARMIN_AUTH_URL"):
        monkeypatch.delenv(name, raising=False)
    instance = Trailcoach(repository=MemoryRepository(), config=_CONFIG)
    set_trailcoach(instance)
    yield instance
    set_trailcoach(None)


@pytest.fixture
def client(tc):
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def _activity(id, date, provider, distance=10.0):
    return Activity(id, f"Run {id}", ActivityType.RUN, distance, 60, 150, date, 600, provider.value)


def test_health(client):
    response = client.get("/health")
    assert response.get_json() == {"status": "ok", "app": "trailcoach-web"}


class TestIntegrations:
    def test_lists_every_provider(self, client, tc):
        tc.states[Provider.STRAVA].connected = True
        data = client.get("/api/integrations").get_json()
        assert data["strava"]["connected"] is True
        assert data["garmin"] == {"connected": False, "syncing": False, "error": None, "lastSync": None}

    def test_connect_redirects_to_provider(self, client):
        response = client.get("/api/integrations/strava/connect")
        assert response.status_code == 302
        assert response.headers["Location"].startswith("https://www.strava.com/oauth/authorize")

    def test_connect_without_configuration(self, client):
        response = client.get("/api/integrations/garmin/connect")
        assert response.status_code == 400
        assert response.get_json()["setting"] == "client_id"

    def test_unknown_provider(self, client):
        assert client.get("/api/integrations/polar/connect").status_code == 404
        assert client.delete("/api/integrations/polar").status_code == 404

    def test_oauth_callback_connects(self, client, tc):
        strava = tc.get_provider(Provider.STRAVA)
        with patch.object(strava, "_request_token", return_value={"access_token": "acc", "expires_in": 3600}):
            response = client.get("/api/oauth/callback?code=abc&state=strava")

        data = response.get_json()
        assert response.status_code == 200
        assert data["state"] == "Connected"
        assert data["integrations"]["strava"]["connected"] is True
        assert tc.tokens.get(Provider.STRAVA).access_token == "acc"

    def test_oauth_callback_error(self, client):
        response = client.get("/api/oauth/callback?error=access_denied&state=garmin")
        assert response.status_code == 400
        assert response.get_json()["state"] == "Failed"

    def test_disconnect(self, client, tc):
        tc.tokens.set(Provider.GARMIN, TokenPayload("g"))
        tc.states[Provider.GARMIN].connected = True

        data = client.delete("/api/integrations/garmin").get_json()

        assert data["garmin"]["connected"] is False
        assert tc.tokens.get(Provider.GARMIN) is None


class TestSync:
    def test_sync_merges_and_reports_failures(self, client, tc):
        strava = tc.get_provider(Provider.STRAVA)
        garmin = tc.get_provider(Provider.GARMIN)
        with (
            patch.object(strava, "fetch_activities", return_value=[_activity("s1", "2024-01-02", Provider.STRAVA)]),
            patch.object(garmin, "fetch_activities", side_effect=ActivityFetchError("503", provider="garmin")),
        ):
            data = client.post("/api/sync").get_json()

        assert [a["id"] for a in data["activities"]] == ["s1"]
        assert data["activities"][0]["elevationGain"] == 150
        assert data["integrations"]["garmin"]["error"] == "Garmin sync failed. Please retry."
        assert data["integrations"]["strava"]["lastSync"] is not None

        assert [a["id"] for a in client.get("/api/activities").get_json()] == ["s1"]

    def test_retry_one_provider(self, client, tc):
        garmin = tc.get_provider(Provider.GARMIN)
        with patch.object(garmin, "fetch_activities", return_value=[_activity("g1", "2024-01-03", Provider.GARMIN)]):
            data = client.post("/api/sync/garmin").get_json()
        assert [a["id"] for a in data["activities"]] == ["g1"]
        assert data["integrations"]["garmin"]["error"] is None


class TestPlan:
    def test_plan_falls_back_when_coach_fails(self, client, tc):
        with patch.object(tc.coach, "generate_plan", side_effect=AIServiceError("HTTP 500")):
            data = client.get("/api/plan").get_json()
        assert data["usedFallback"] is True
        assert data["plan"]["focus"] == "Base Building & Aerobic Capacity"
        assert len(data["plan"]["sessions"]) == 7

    def test_existing_plan_is_not_regenerated(self, client, tc):
        tc.plans.save(fallback_plan(tc.today)._replace(week_number=4))
        with patch.object(tc.coach, "generate_plan") as generate:
            data = client.get("/api/plan").get_json()
        generate.assert_not_called()
        assert data["plan"]["weekNumber"] == 4
        assert data["generated"] is False

    def test_regenerate(self, client, tc):
        new_plan = fallback_plan(tc.today)._replace(week_number=6)
        with patch.object(tc.coach, "generate_plan", return_value=new_plan):
            data = client.post("/api/plan/regenerate").get_json()
        assert data["plan"]["weekNumber"] == 6
        assert data["generated"] is True

    def test_next_workout(self, client, tc):
        assert client.get("/api/plan/next").get_json() == {"session": None}
        tc.plans.save(fallback_plan(tc.today))
        session = client.get("/api/plan/next").get_json()["session"]
        assert session["date"] == tc.today.isoformat()

    def test_adherence_needs_a_plan(self, client):
        assert client.get("/api/plan/adherence").status_code == 404

    def test_adherence(self, client, tc):
        tc.plans.save(fallback_plan(tc.today))
        data = client.get("/api/plan/adherence").get_json()
        assert len(data["sessions"]) == 7
        assert data["summary"]["plannedDistance"] == 68
        assert data["summary"]["actualDistance"] == 0


class TestProfile:
    def test_default_profile(self, client):
        data = client.get("/api/profile").get_json()
        assert data["name"] == "Trail Runner"
        assert data["raceDate"] == "2025-08-24"
        assert "weeksToRace" in data

    def test_update_merges_fields(self, client, tc):
        response = client.put("/api/profile", json={"raceDate": "2099-06-01", "goals": ["Sub 30h"]})
        assert response.status_code == 200
        data = response.get_json()
        assert data["name"] == "Trail Runner"
        assert data["goals"] == ["Sub 30h"]
        assert data["weeksToRace"] > 0
        assert tc.profile.race_date == "2099-06-01"

    def test_invalid_race_date(self, client, tc):
        response = client.put("/api/profile", json={"raceDate": "someday"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid profile"
        assert tc.profile.race_date == "2025-08-24"

    def test_body_must_be_an_object(self, client):
        response = client.put("/api/profile", json=["raceDate"])
        assert response.status_code == 400
        assert response.get_json() == {"error": "Profile must be a JSON object"}


class TestNutrition:
    def test_empty_day(self, client, tc):
        data = client.get("/api/nutrition").get_json()
        assert data["date"] == tc.today.isoformat()
        assert data["meals"] == []
        assert data["remaining"] == data["targets"]

    def test_log_meal(self, client, tc):
        meal = Meal("m1", "Pasta", 700, 25, 110, 15, "19:00", MealType.DINNER)
        with patch.object(tc.coach, "analyze_meal", return_value=meal) as analyze:
            response = client.post("/api/nutrition/meals", json={"foodLog": "big bowl of pasta"})

        analyze.assert_called_once_with("big bowl of pasta")
        data = response.get_json()
        assert data["meal"]["name"] == "Pasta"
        assert data["totals"]["calories"] == 700
        assert data["remaining"]["calories"] == 2500
        assert len(tc.nutrition.day().meals) == 1

    def test_log_meal_requires_food_log(self, client):
        for body in ({}, {"foodLog": ""}, ["pasta"]):
            response = client.post("/api/nutrition/meals", json=body)
            assert response.status_code == 400
            assert response.get_json() == {"error": "Food log is required"}

    def test_plan_is_generated_once(self, client, tc):
        with patch.object(tc.coach, "nutrition_plan", return_value=fallback_nutrition_plan()) as generate:
            first = client.get("/api/nutrition/plan").get_json()
            second = client.get("/api/nutrition/plan").get_json()
            client.post("/api/nutrition/plan/regenerate")

        assert generate.call_count == 2
        assert first == second
        assert first[0]["day"] == "Training Day"
        assert first[0]["meals"]["Snack"]["name"] == "Trail Mix"


class TestCoach:
    def test_advice(self, client, tc):
        with patch.object(tc.coach, "coach_advice", return_value="Sleep more.") as advice:
            response = client.post("/api/coach", json={"query": "Why am I tired?"})
        assert response.get_json() == {"advice": "Sleep more."}
        assert advice.call_args.args == ("Why am I tired?", "No training plan yet.")

    def test_query_required(self, client):
        response = client.post("/api/coach", json={"query": ""})
        assert response.status_code == 400
        assert response.get_json() == {"error": "Query is required"}

    def test_status(self, client, tc):
        with patch.object(tc.coach, "check_connection", return_value={"status": "valid"}):
            assert client.get("/api/coach/status").get_json() == {"status": "valid"}
