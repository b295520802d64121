"""Tests for planner.py - matchday-sequential and preference-greedy placement."""

from datetime import date, time, timedelta

import pytest

from matchplan.errors import InsufficientCapacityError
from matchplan.models import Fixture, Preference, Slot
from matchplan.planner import (
    MatchdaySequentialStrategy,
    PreferenceGreedyStrategy,
    WeekLedger,
    best_plans,
    build_plan,
    byes_from_fixtures,
    slot_date,
)
from matchplan.roundrobin import (
    bye_for_matchday, generate_pairings, generate_playoff_fixtures,
)
from matchplan.slots import SlotCatalog

MONDAY = Slot(weekday=1, start_time=time(20, 0), venue="De Dageraad",
              venue_id=1, priority=1)
MONDAY_LATE = Slot(weekday=1, start_time=time(21, 0), venue="De Dageraad",
                   venue_id=1, priority=2)
TUESDAY = Slot(weekday=2, start_time=time(20, 30), venue="De Vlasschaard",
               venue_id=2, priority=3)


def _weeks(count, start=date(2025, 9, 1)):
    return [start + timedelta(weeks=i) for i in range(count)]


def _fixture(home, away, matchday=1):
    return Fixture(home=home, away=away, round_label=f"Matchday {matchday}",
                   matchday=matchday)


class TestSlotDate:
    def test_offset_from_monday(self):
        assert slot_date(date(2025, 9, 1), MONDAY) == date(2025, 9, 1)
        assert slot_date(date(2025, 9, 1), TUESDAY) == date(2025, 9, 2)


class TestWeekLedger:
    def test_claim_and_capacity(self):
        ledger = WeekLedger.for_weeks(2)
        assert ledger.is_free(0, _fixture(1, 2), capacity=1)
        assert ledger.claim(0, _fixture(1, 2)) == 0
        assert not ledger.is_free(0, _fixture(3, 4), capacity=1)
        assert ledger.is_free(0, _fixture(3, 4), capacity=2)
        assert not ledger.is_free(0, _fixture(2, 3), capacity=2)
        assert ledger.usage(2) == "Week 1: 1/2, Week 2: 0/2"

    def test_ledgers_are_independent(self):
        a = WeekLedger.for_weeks(1)
        b = WeekLedger.for_weeks(1)
        a.claim(0, _fixture(1, 2))
        assert b.slots_used == [0]
        assert b.teams_used == [set()]


class TestPreferenceGreedy:
    def test_no_team_twice_in_a_week(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        result = build_plan(fixtures, _weeks(3), [MONDAY, TUESDAY])
        assert result["success"], result["message"]
        plan = result["plan"]
        assert len(plan) == 6
        by_week = {}
        for e in plan.entries:
            by_week.setdefault(e.week_index, []).extend(e.fixture.participants())
        for teams in by_week.values():
            assert len(teams) == len(set(teams))

    def test_ties_go_to_earliest_week(self):
        fixtures = [_fixture(1, 2), _fixture(3, 4)]
        plan = build_plan(fixtures, _weeks(3), [MONDAY, TUESDAY])["plan"]
        assert [e.week_index for e in plan.entries] == [0, 0]
        assert [e.slot_index for e in plan.entries] == [0, 1]
        assert plan.entries[0].match_date == date(2025, 9, 1)
        assert plan.entries[1].match_date == date(2025, 9, 2)

    def test_preference_pulls_into_better_week(self):
        # Team 1 wants Tuesday. Week 1 already used its Monday slot, so its
        # next free slot is Tuesday; week 2 would still offer Monday.
        prefs = {1: Preference(days=["dinsdag"])}
        fixtures = [_fixture(3, 4), _fixture(1, 2)]
        plan = build_plan(fixtures, _weeks(2), [MONDAY, TUESDAY], prefs)["plan"]
        second = plan.entries[1]
        assert second.week_index == 0
        assert second.match_date == date(2025, 9, 2)
        assert second.venue == "De Vlasschaard"
        assert second.details.home_score == 3
        assert second.details.away_score == 0
        assert second.details.combined == 3
        assert second.details.max_combined == 6

    def test_later_week_wins_on_strictly_better_score(self):
        prefs = {1: Preference(days=["maandag"]), 2: Preference(days=["maandag"])}
        # Week 1 offers its Tuesday slot (0), week 2 its Monday slot (6)
        fixtures = [_fixture(3, 4), _fixture(1, 2)]
        plan = build_plan(fixtures, _weeks(2), [MONDAY, TUESDAY], prefs,
                          PreferenceGreedyStrategy(matches_per_week=2))["plan"]
        assert plan.entries[1].week_index == 1
        assert plan.entries[1].details.combined == 6
        assert plan.total_combined_score == 6
        assert plan.team_totals == {1: 3, 2: 3, 3: 0, 4: 0}

    def test_weekly_capacity(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        plan = build_plan(fixtures, _weeks(6), [MONDAY, TUESDAY],
                          strategy=PreferenceGreedyStrategy(matches_per_week=1))["plan"]
        assert sorted(e.week_index for e in plan.entries) == [0, 1, 2, 3, 4, 5]

    def test_slots_wrap_in_priority_order(self):
        fixtures = [_fixture(1, 2), _fixture(3, 4), _fixture(5, 6)]
        plan = build_plan(fixtures, _weeks(1), [TUESDAY, MONDAY])["plan"]
        assert [e.start_time for e in plan.entries] == [
            time(20, 0), time(20, 30), time(20, 0),
        ]

    def test_codes_follow_input_order(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        plan = build_plan(fixtures, _weeks(3), [MONDAY])["plan"]
        assert [e.code for e in plan.entries] == [
            "REG-001", "REG-002", "REG-003", "REG-004", "REG-005", "REG-006",
        ]
        assert [e.fixture for e in plan.entries] == fixtures

    def test_too_few_weeks_fails_without_partial_plan(self, capsys):
        fixtures = generate_pairings(list(range(1, 21)))
        result = build_plan(fixtures, _weeks(2), [MONDAY, TUESDAY])
        assert not result["success"]
        assert result["plan"] is None
        assert "Not enough playing weeks" in result["message"]
        assert "190 matches" in result["message"]
        assert "Planning failed" in capsys.readouterr().out

    def test_blocked_fixture_named_in_error(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        result = build_plan(fixtures, _weeks(2), [MONDAY])
        assert not result["success"]
        assert result["plan"] is None
        assert "Cannot place match 5" in result["message"]
        assert "Week 1: 2/7" in result["message"]

    def test_raises_from_strategy_directly(self):
        strategy = PreferenceGreedyStrategy(matches_per_week=1)
        with pytest.raises(InsufficientCapacityError):
            strategy.plan(generate_pairings([1, 2, 3, 4]), _weeks(5),
                          SlotCatalog([MONDAY]))

    def test_idempotent(self):
        fixtures = generate_pairings(list(range(1, 9)), rounds=2)
        prefs = {2: Preference(days=["dinsdag"]), 5: Preference(venues=[1])}
        a = build_plan(fixtures, _weeks(30), [MONDAY, MONDAY_LATE, TUESDAY], prefs)
        b = build_plan(fixtures, _weeks(30), [MONDAY, MONDAY_LATE, TUESDAY], prefs)
        assert a["success"], a["message"]
        assert a["plan"].preview_rows("league") == b["plan"].preview_rows("league")

    def test_odd_pool_byes(self):
        pool = [1, 2, 3, 4, 5]
        plan = build_plan(generate_pairings(pool), _weeks(5), [MONDAY])["plan"]
        assert len(plan) == 10
        assert plan.byes == {md: [bye_for_matchday(pool, md)] for md in range(1, 6)}

    def test_missing_slots_fail(self):
        result = build_plan([_fixture(1, 2)], _weeks(1), [])
        assert not result["success"]
        assert "No timeslots" in result["message"]

    def test_invalid_slot_reported_as_result(self):
        bad = Slot(weekday=0, start_time=time(20, 0), venue="Hal", priority=1)
        result = build_plan([_fixture(1, 2)], _weeks(1), [bad])
        assert not result["success"]
        assert result["plan"] is None
        assert "weekday" in result["message"].lower()

    def test_no_fixtures_fail(self):
        result = build_plan([], _weeks(1), [MONDAY])
        assert not result["success"]

    def test_finalized_flag(self):
        plan = build_plan([_fixture(1, 2)], _weeks(1), [MONDAY],
                          finalized=False)["plan"]
        assert plan.rows()[0]["is_finalized"] is False


class TestMatchdaySequential:
    def test_matchday_k_in_week_k(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        weeks = _weeks(3)
        result = build_plan(fixtures, weeks, [MONDAY, MONDAY_LATE, TUESDAY],
                            strategy=MatchdaySequentialStrategy())
        assert result["success"], result["message"]
        for e in result["plan"].entries:
            assert e.week_index == e.fixture.matchday - 1
            assert e.match_date - weeks[e.week_index] < timedelta(days=7)
            assert e.details is None

    def test_weekday_alternates_between_matchdays(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        plan = build_plan(fixtures, _weeks(3), [MONDAY, MONDAY_LATE, TUESDAY],
                          strategy=MatchdaySequentialStrategy())["plan"]
        days = {e.fixture.matchday: {e.match_date.isoweekday()} for e in plan.entries}
        assert days == {1: {1}, 2: {2}, 3: {1}}
        md1 = [e.start_time for e in plan.entries if e.fixture.matchday == 1]
        assert md1 == [time(20, 0), time(21, 0)]
        # Only one Tuesday slot: both matches share it
        md2 = [e.start_time for e in plan.entries if e.fixture.matchday == 2]
        assert md2 == [time(20, 30), time(20, 30)]

    def test_playoff_stages_swap_days(self):
        fixtures = generate_playoff_fixtures([1, 2, 3, 4], [5, 6, 7, 8], rounds=1)
        plan = build_plan(fixtures, _weeks(3), [MONDAY, TUESDAY],
                          strategy=MatchdaySequentialStrategy())["plan"]
        day = {}
        for e in plan.entries:
            day.setdefault((e.fixture.matchday, e.fixture.stage), set()).add(
                e.match_date.isoweekday())
        assert day[(1, "top_playoff")] == {1}
        assert day[(1, "bottom_playoff")] == {2}
        assert day[(2, "top_playoff")] == {2}
        assert day[(2, "bottom_playoff")] == {1}

    def test_codes(self):
        fixtures = generate_pairings([1, 2, 3, 4])
        plan = build_plan(fixtures, _weeks(3), [MONDAY],
                          strategy=MatchdaySequentialStrategy("PO"))["plan"]
        assert plan.entries[0].code == "PO-001"
        assert plan.entries[-1].code == "PO-006"
        assert plan.total_combined_score == 0
        assert not plan.details_available()

    def test_bracket_codes_kept(self):
        fixtures = [Fixture(home=1, away=2, round_label="Final", matchday=1,
                            code="FINAL")]
        plan = build_plan(fixtures, _weeks(1), [MONDAY],
                          strategy=MatchdaySequentialStrategy())["plan"]
        assert plan.entries[0].code == "FINAL"

    def test_too_few_weeks(self):
        result = build_plan(generate_pairings([1, 2, 3, 4]), _weeks(2), [MONDAY],
                            strategy=MatchdaySequentialStrategy())
        assert not result["success"]
        assert result["plan"] is None
        assert "need 3 matchdays, have 2 weeks" in result["message"]


class TestByesFromFixtures:
    def test_even_pool(self):
        assert byes_from_fixtures(generate_pairings([1, 2, 3, 4])) == {}

    def test_two_groups(self):
        fixtures = generate_playoff_fixtures([1, 2, 3], [4, 5, 6], rounds=1)
        byes = byes_from_fixtures(fixtures)
        assert byes[1] == [1, 4]
        assert all(len(idle) == 2 for idle in byes.values())


class TestBestPlans:
    POOL = [1, 2, 3, 4, 5, 6]
    PREFS = {
        1: Preference(days=["maandag"]),
        2: Preference(days=["dinsdag"], venues=[2]),
        4: Preference(timeslots=["21:00"]),
        6: Preference(days=["dinsdag"]),
    }
    SLOTS = [MONDAY, MONDAY_LATE, TUESDAY]

    def _sample(self, **kwargs):
        return best_plans(generate_pairings(self.POOL), _weeks(10), self.SLOTS,
                          self.PREFS, **kwargs)

    def test_ranked_best_first(self):
        result = self._sample(samples=10, seed=3, top_percent=1.0)
        assert result["success"], result["message"]
        scores = [p.total_combined_score for p in result["plans"]]
        assert len(scores) == 10
        assert scores == sorted(scores, reverse=True)
        assert result["plan"] is result["plans"][0]

    def test_never_worse_than_input_order(self):
        single = build_plan(generate_pairings(self.POOL), _weeks(10),
                            self.SLOTS, self.PREFS)["plan"]
        best = self._sample(samples=8, seed=1)["plan"]
        assert best.total_combined_score >= single.total_combined_score

    def test_same_seed_same_plan(self):
        a = self._sample(samples=6, seed=11)["plan"]
        b = self._sample(samples=6, seed=11)["plan"]
        assert a.preview_rows() == b.preview_rows()

    def test_top_fraction(self):
        assert len(self._sample(samples=10, seed=2)["plans"]) == 1
        assert len(self._sample(samples=10, seed=2, top_percent=0.25)["plans"]) == 3

    def test_every_sample_failing(self):
        result = best_plans(generate_pairings(self.POOL), _weeks(1), [MONDAY],
                            samples=4, seed=0)
        assert not result["success"]
        assert result["plan"] is None
        assert result["plans"] == []
        assert "Not enough playing weeks" in result["message"]

    def test_invalid_slot_reported_as_result(self):
        bad = Slot(weekday=9, start_time=time(20, 0), venue="Hal", priority=1)
        result = best_plans([_fixture(1, 2)], _weeks(1), [bad], samples=3)
        assert not result["success"]
        assert result["plans"] == []

    def test_finalized_flag_carried(self):
        result = self._sample(samples=3, seed=0, finalized=False)
        assert all(not p.finalized for p in result["plans"])
