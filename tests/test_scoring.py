"""Tests for urgency scoring and sorting."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from focuslist.core.scoring import sort_by_urgency, urgency_score
from focuslist.core.tasks import Priority, Task

EST = timezone(timedelta(hours=-5))


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 10, 0, tzinfo=EST)


def make_task(now, id="1", hours=1.0, priority=Priority.MEDIUM, completed=False):
    return Task(
        id=id,
        title=f"Task {id}",
        deadline=now + timedelta(hours=hours),
        priority=priority,
        created_at=now - timedelta(days=1),
        is_completed=completed,
    )


class TestUrgencyScore:
    def test_overdue_high_priority(self, now):
        task = make_task(now, hours=-2, priority=Priority.HIGH)
        assert urgency_score(task, now) == pytest.approx(6000)

    def test_due_within_hour_plateau(self, now):
        task = make_task(now, hours=0.5, priority=Priority.LOW)
        assert urgency_score(task, now) == pytest.approx(1000)

    def test_hyperbolic_decay(self, now):
        task = make_task(now, hours=4, priority=Priority.MEDIUM)
        assert urgency_score(task, now) == pytest.approx(0.5)

    def test_due_exactly_now_scores_zero(self, now):
        # hours <= 0 branch with |0| overdue
        assert urgency_score(make_task(now, hours=0, priority=Priority.HIGH), now) == 0

    def test_completed_is_negative_infinity(self, now):
        task = make_task(now, hours=-5, priority=Priority.HIGH, completed=True)
        assert urgency_score(task, now) == -math.inf

    def test_overdue_grows_with_time(self, now):
        task = make_task(now, hours=-1)
        assert urgency_score(task, now + timedelta(hours=1)) > urgency_score(task, now)

    def test_one_hour_headroom_cannot_reach_plateau(self, now):
        high = make_task(now, hours=1.0001, priority=Priority.HIGH)
        low_due_soon = make_task(now, hours=0.99, priority=Priority.LOW)
        assert urgency_score(high, now) < 3
        assert urgency_score(low_due_soon, now) > urgency_score(high, now)

    @pytest.mark.parametrize("hours", [-3, 0.5, 2, 48])
    def test_higher_priority_scores_higher_at_equal_distance(self, now, hours):
        high = urgency_score(make_task(now, hours=hours, priority=Priority.HIGH), now)
        medium = urgency_score(make_task(now, hours=hours, priority=Priority.MEDIUM), now)
        low = urgency_score(make_task(now, hours=hours, priority=Priority.LOW), now)
        assert high > medium > low

    @pytest.mark.parametrize("sooner,later", [(-5, -1), (-1, 0.5), (0.5, 3), (3, 30), (2, 200)])
    def test_sooner_deadline_never_scores_lower(self, now, sooner, later):
        a = urgency_score(make_task(now, hours=sooner), now)
        b = urgency_score(make_task(now, hours=later), now)
        assert a >= b


class TestSortByUrgency:
    def test_orders_by_descending_score(self, now):
        tasks = [
            make_task(now, id="later", hours=48, priority=Priority.HIGH),
            make_task(now, id="overdue", hours=-1, priority=Priority.LOW),
            make_task(now, id="soon", hours=2, priority=Priority.MEDIUM),
            make_task(now, id="hour", hours=0.5, priority=Priority.LOW),
        ]
        result = sort_by_urgency(tasks, now)
        assert [t.id for t in result] == ["hour", "overdue", "soon", "later"]

    def test_completed_sort_last(self, now):
        tasks = [
            make_task(now, id="done", hours=-10, priority=Priority.HIGH, completed=True),
            make_task(now, id="far", hours=500, priority=Priority.LOW),
            make_task(now, id="near", hours=5, priority=Priority.LOW),
        ]
        result = sort_by_urgency(tasks, now)
        assert result[-1].id == "done"

    def test_equal_scores_break_ties_by_id(self, now):
        tasks = [
            make_task(now, id="b", hours=5),
            make_task(now, id="a", hours=5),
            make_task(now, id="d", completed=True),
            make_task(now, id="c", completed=True),
        ]
        result = sort_by_urgency(tasks, now)
        assert [t.id for t in result] == ["a", "b", "c", "d"]

    def test_does_not_mutate_input(self, now):
        tasks = [make_task(now, id="1", hours=10), make_task(now, id="2", hours=1.5)]
        original = list(tasks)
        result = sort_by_urgency(tasks, now)
        assert tasks == original
        assert result is not tasks

    def test_sorting_is_idempotent(self, now):
        tasks = [make_task(now, id=str(i), hours=h) for i, h in enumerate([7, -2, 0.3, 15, 3])]
        once = sort_by_urgency(tasks, now)
        assert sort_by_urgency(once, now) == once

    def test_empty(self, now):
        assert sort_by_urgency([], now) == []
