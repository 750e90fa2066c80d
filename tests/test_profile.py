import datetime

import pytest

from trailcoach.profile import FitnessLevel, UserProfile, load_profile, save_profile
from trailcoach.storage import USER_PROFILE_KEY


def test_defaults():
    profile = UserProfile()
    assert profile.name == "Trail Runner"
    assert profile.race_distance == 175
    assert profile.race_date == "2025-08-24"
    assert profile.fitness_level == FitnessLevel.ADVANCED


@pytest.mark.parametrize(
    "today,expected",
    [
        (datetime.date(2025, 8, 17), 1),
        (datetime.date(2025, 8, 16), 2),
        (datetime.date(2025, 8, 24), 0),
        (datetime.date(2025, 9, 30), 0),
    ],
)
def test_weeks_to_race(today, expected):
    assert UserProfile().weeks_to_race(today) == expected


class TestPlanRequest:
    def test_minimal_request(self):
        request = UserProfile().plan_request(datetime.date(2025, 8, 13))
        assert request == {
            "level": "Advanced",
            "targetRace": "175km ultra-trail",
            "targetDate": "2025-08-24",
            "weeksToRace": 2,
            "currentWeekStart": "2025-08-11",
        }

    def test_optional_fields_are_included_when_set(self):
        profile = UserProfile(weekly_hours=9.5, goals=("sub-40h", "no DNF"))
        request = profile.plan_request(datetime.date(2025, 8, 13))
        assert request["weeklyHours"] == 9.5
        assert request["goals"] == ["sub-40h", "no DNF"]


class TestPersistence:
    def test_missing_profile_is_default(self, repository):
        assert load_profile(repository) == UserProfile()

    def test_save_and_load(self, repository):
        profile = UserProfile(
            name="Kilian", race_distance=100, race_date="2026-06-01", fitness_level=FitnessLevel.ELITE
        )
        save_profile(repository, profile)
        assert repository.load(USER_PROFILE_KEY)["fitnessLevel"] == "Elite"
        assert load_profile(repository) == profile

    @pytest.mark.parametrize(
        "stored",
        [
            {"fitnessLevel": "Legendary"},
            {"raceDate": "next summer"},
            ["not", "a", "profile"],
        ],
    )
    def test_invalid_profile_degrades_to_default(self, repository, stored):
        repository.save(USER_PROFILE_KEY, stored)
        assert load_profile(repository) == UserProfile()
