import datetime

import pytest

from trailcoach.activity import Activity, ActivityType
from trailcoach.adherence import Adherence, classify, match, summarize, week_adherence
from trailcoach.plan import fallback_plan

WEDNESDAY = datetime.date(2024, 1, 3)


def run(date, distance, id="a"):
    return Activity(id, "Run", ActivityType.RUN, distance, 60, 100, date, 500, "strava")


@pytest.mark.parametrize(
    "target,actual,expected",
    [
        (10, 10, Adherence.ON_TRACK),
        (10, 9, Adherence.ON_TRACK),
        (10, 8.9, Adherence.PARTIAL),
        (10, 5, Adherence.PARTIAL),
        (10, 4.9, Adherence.BEHIND),
        (10, 0, Adherence.BEHIND),
        (0, 0, Adherence.EXEMPT),
        (0, 12, Adherence.EXEMPT),
    ],
)
def test_classify(target, actual, expected):
    assert classify(target, actual) == expected


def test_match_takes_first_activity_in_list_order():
    plan = fallback_plan(WEDNESDAY)
    activities = [run("2024-01-02", 11, "first"), run("2024-01-02", 4, "second")]
    assert match(plan.sessions[1], activities).id == "first"
    assert match(plan.sessions[2], activities) is None


class TestWeekAdherence:
    def test_grades_every_session(self):
        plan = fallback_plan(WEDNESDAY)
        activities = [
            run("2024-01-02", 10.2, "tue"),
            run("2024-01-03", 4.5, "wed"),
            run("2024-01-06", 12, "sat"),
        ]

        rows = week_adherence(plan, activities)

        assert [row.status for row in rows] == [
            Adherence.EXEMPT,
            Adherence.ON_TRACK,
            Adherence.PARTIAL,
            Adherence.BEHIND,
            Adherence.EXEMPT,
            Adherence.BEHIND,
            Adherence.BEHIND,
        ]
        assert rows[1].activity.id == "tue"
        assert rows[3].activity is None
        assert rows[3].actual_km == 0.0

    def test_summary(self):
        plan = fallback_plan(WEDNESDAY)
        rows = week_adherence(plan, [run("2024-01-02", 10.2), run("2024-01-06", 26)])

        summary = summarize(rows)

        assert summary.counts[Adherence.ON_TRACK] == 2
        assert summary.counts[Adherence.EXEMPT] == 2
        assert summary.counts[Adherence.BEHIND] == 3
        assert summary.counts[Adherence.PARTIAL] == 0
        assert summary.planned_km == 68
        assert summary.actual_km == 36.2
        assert summary.to_dict()["counts"] == {"OnTrack": 2, "Partial": 0, "Behind": 3, "Exempt": 2}

    def test_row_serialization(self):
        rows = week_adherence(fallback_plan(WEDNESDAY), [])
        data = rows[0].to_dict()
        assert data["status"] == "Exempt"
        assert data["activity"] is None
        assert data["session"]["day"] == "Monday"
