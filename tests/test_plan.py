import datetime
from unittest.mock import Mock

import pytest

from trailcoach.coach import CoachClient
from trailcoach.exceptions import AIServiceError
from trailcoach.plan import (
    WEEKDAYS,
    PlanStore,
    SessionType,
    TrainingSession,
    WeeklyPlan,
    fallback_plan,
    next_workout,
    week_dates,
)
from trailcoach.profile import UserProfile
from trailcoach.storage import PLAN_KEY

WEDNESDAY = datetime.date(2024, 1, 3)
SCATTERED_DATES = ["2024-01-01", "2024-01-09", "2024-01-03", "2024-01-15", "2024-01-05", "2024-01-06", "2023-12-20"]


def _set_dates(data, dates):
    for session, date in zip(data["sessions"], dates):
        session["date"] = date


def plan_dict(week_number=3, focus="Vert"):
    dates = week_dates(WEDNESDAY)
    return {
        "weekNumber": week_number,
        "focus": focus,
        "sessions": [
            {"day": day, "date": date, "type": "Easy", "distanceTarget": 8, "description": "Easy miles"}
            for day, date in zip(WEEKDAYS, dates)
        ],
    }


class TestWeeklyPlan:
    def test_from_dict_round_trips(self):
        plan = WeeklyPlan.from_dict(plan_dict())
        assert plan.week_number == 3
        assert plan.sessions[0].type == SessionType.EASY
        assert plan.to_dict() == plan_dict()

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d["sessions"].pop(),
            lambda d: d["sessions"][1].update(date=d["sessions"][0]["date"]),
            lambda d: d["sessions"][0].update(distanceTarget=-1),
            lambda d: d["sessions"][0].update(distanceTarget="ten"),
            lambda d: d["sessions"][0].update(type="Sprint"),
            lambda d: d.pop("focus"),
            lambda d: _set_dates(d, SCATTERED_DATES),
            lambda d: _set_dates(d, week_dates(WEDNESDAY)[::-1]),
            lambda d: _set_dates(d, [f"2024-01-{day:02d}" for day in range(2, 9)]),
            lambda d: d["sessions"][0].update(day="Sunday"),
            lambda d: d["sessions"].insert(0, d["sessions"].pop()),
            lambda d: d["sessions"][0].update(date="next monday"),
        ],
        ids=[
            "six-sessions",
            "duplicate-date",
            "negative-distance",
            "string-distance",
            "unknown-type",
            "no-focus",
            "dates-across-weeks",
            "dates-reversed",
            "week-starts-tuesday",
            "wrong-day-name",
            "sunday-first",
            "unparseable-date",
        ],
    )
    def test_from_dict_rejects_invalid_plans(self, mutate):
        data = plan_dict()
        mutate(data)
        with pytest.raises((KeyError, TypeError, ValueError)):
            WeeklyPlan.from_dict(data)

    def test_unknown_fields_survive_a_round_trip(self):
        data = plan_dict()
        data["summary"] = "Build vert"
        data["sessions"][2]["paceHint"] = "5:30/km"

        assert WeeklyPlan.from_dict(data).to_dict() == data

    def test_total_distance(self):
        assert WeeklyPlan.from_dict(plan_dict()).total_distance == 56


class TestFallbackPlan:
    def test_covers_the_current_week(self):
        plan = fallback_plan(WEDNESDAY)
        assert [s.date for s in plan.sessions] == week_dates(WEDNESDAY)
        assert [s.day for s in plan.sessions] == WEEKDAYS
        assert plan.sessions[0].date == "2024-01-01"

    def test_sunday_belongs_to_the_week_that_started_six_days_earlier(self):
        plan = fallback_plan(datetime.date(2024, 1, 7))
        assert plan.sessions[0].date == "2024-01-01"
        assert plan.sessions[-1].date == "2024-01-07"

    def test_content(self):
        plan = fallback_plan(WEDNESDAY)
        assert plan.week_number == 1
        assert plan.focus == "Base Building & Aerobic Capacity"
        assert [(s.day, s.type.value, s.distance_target, s.description) for s in plan.sessions] == [
            ("Monday", "Rest", 0, "Active recovery or total rest."),
            ("Tuesday", "Easy", 10, "Zone 2 flat trail run."),
            ("Wednesday", "Hill Repeats", 8, "10x3min hills @ threshold."),
            ("Thursday", "Easy", 10, "Recovery run, keep HR low."),
            ("Friday", "Rest", 0, "Mobility work."),
            ("Saturday", "Long Run", 25, "Trail run with 1000m+ elevation gain."),
            ("Sunday", "Easy", 15, "Back-to-back run on tired legs."),
        ]
        assert plan.total_distance == 68

    def test_is_valid_by_its_own_rules(self):
        plan = fallback_plan(WEDNESDAY)
        assert WeeklyPlan.from_dict(plan.to_dict()) == plan


class TestNextWorkout:
    def test_today_by_weekday_name(self):
        session = next_workout(fallback_plan(WEDNESDAY), WEDNESDAY)
        assert session.day == "Wednesday"
        assert session.type == SessionType.HILL_REPEATS

    def test_first_session_when_today_is_missing(self):
        plan = WeeklyPlan(
            week_number=1,
            focus="Short",
            sessions=[TrainingSession("Monday", "2024-01-01", SessionType.EASY, 5, "")],
        )
        assert next_workout(plan, WEDNESDAY).day == "Monday"

    def test_no_plan(self):
        assert next_workout(None, WEDNESDAY) is None


class TestPlanStore:
    def test_ensure_keeps_existing_plan(self, repository):
        repository.save(PLAN_KEY, plan_dict())
        coach = Mock()
        result = PlanStore(repository, coach).ensure(UserProfile(), WEDNESDAY)

        assert result.plan.week_number == 3
        assert result.generated is False
        coach.generate_plan.assert_not_called()

    def test_ensure_generates_when_nothing_stored(self, repository):
        coach = Mock()
        coach.generate_plan.return_value = WeeklyPlan.from_dict(plan_dict(week_number=9))
        result = PlanStore(repository, coach).ensure(UserProfile(), WEDNESDAY)

        assert result.generated is True
        assert result.used_fallback is False
        assert repository.load(PLAN_KEY)["weekNumber"] == 9
        request = coach.generate_plan.call_args.args[0]
        assert request["currentWeekStart"] == "2024-01-01"

    def test_malformed_stored_plan_is_regenerated(self, repository):
        repository._write(PLAN_KEY, "{broken")
        coach = Mock()
        coach.generate_plan.return_value = WeeklyPlan.from_dict(plan_dict())
        result = PlanStore(repository, coach).ensure(UserProfile(), WEDNESDAY)
        assert result.generated is True

    def test_ai_failure_falls_back_and_persists(self, repository, caplog):
        coach = Mock()
        coach.generate_plan.side_effect = AIServiceError("HTTP 500", endpoint="/api/ai/generate-plan")

        result = PlanStore(repository, coach).regenerate(UserProfile(), WEDNESDAY)

        assert result.used_fallback is True
        assert result.plan == fallback_plan(WEDNESDAY)
        assert repository.load(PLAN_KEY) == fallback_plan(WEDNESDAY).to_dict()
        assert "Using fallback training plan" in caplog.text

    def test_regenerate_replaces_stored_plan(self, repository):
        repository.save(PLAN_KEY, plan_dict(week_number=1))
        coach = Mock()
        coach.generate_plan.return_value = WeeklyPlan.from_dict(plan_dict(week_number=2))

        PlanStore(repository, coach).regenerate(UserProfile(), WEDNESDAY)

        assert repository.load(PLAN_KEY)["weekNumber"] == 2

    def test_plan_spanning_several_weeks_falls_back(self, repository):
        data = plan_dict()
        _set_dates(data, SCATTERED_DATES)
        session = Mock()
        session.post.return_value = Mock(ok=True, status_code=200, json=Mock(return_value=data))
        coach = CoachClient("http://ai.test", session=session)

        result = PlanStore(repository, coach).regenerate(UserProfile(), WEDNESDAY)

        assert result.used_fallback is True
        assert repository.load(PLAN_KEY) == fallback_plan(WEDNESDAY).to_dict()

    def test_generated_plan_is_stored_as_received(self, repository):
        data = plan_dict(week_number=4)
        data["summary"] = "Build vert"
        coach = Mock()
        coach.generate_plan.return_value = WeeklyPlan.from_dict(data)

        PlanStore(repository, coach).regenerate(UserProfile(), WEDNESDAY)

        assert repository.load(PLAN_KEY) == data
