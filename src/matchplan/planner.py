"""Assignment planner: turns fixtures into a dated, sited Plan.

Two strategies share one interface:

1. MatchdaySequentialStrategy (cups, playoff brackets) - matchday k goes to
   the k-th eligible week; stages alternate weekdays between odd and even
   matchdays; fixtures cycle through that weekday's slots. No scoring.
2. PreferenceGreedyStrategy (league round-robins, position-based
   competitions) - fixtures are placed one by one, in input order, in the
   week whose next free slot gives the highest combined preference score.
   Ties go to the earliest week.

Neither strategy ever returns a partial plan: any fixture that cannot be
placed aborts the whole run. The per-week accumulators live in a WeekLedger
that is created fresh for every plan() call.

build_plan runs one pass. best_plans runs a strategy over several shuffled
fixture orders and ranks the resulting plans by total preference score.
"""

import math
import random
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from matchplan.bracket import knockout_byes
from matchplan.errors import (
    InsufficientCapacityError, InvalidInputError, SchedulingError,
)
from matchplan.models import (
    Fixture, Plan, PlanEntry, Preference, ScoreDetail, ScoredSlotChoice,
    Slot, Venue,
)
from matchplan.preferences import MAX_TEAM_SCORE, score_pair
from matchplan.slots import SlotCatalog
from matchplan.weeks import require_weeks, weeks_needed

MATCHES_PER_WEEK = 7


def slot_date(week: date, slot: Slot) -> date:
    """Concrete date of a slot in the week starting on Monday `week`."""
    return week + timedelta(days=slot.weekday - 1)


def byes_from_fixtures(fixtures: list[Fixture]) -> dict[int, list[int]]:
    """Participants without a fixture on each matchday.

    Bracket fixtures with open positions report the byes the bracket
    builder handed out instead.
    """
    if any(f.home is None or f.away is None for f in fixtures):
        return knockout_byes(fixtures)
    everyone = []
    for f in fixtures:
        for p in f.participants():
            if p not in everyone:
                everyone.append(p)

    present: dict[int, set[int]] = defaultdict(set)
    for f in fixtures:
        present[f.matchday].update(f.participants())

    byes = {}
    for md in sorted(present):
        missing = [p for p in everyone if p not in present[md]]
        if missing:
            byes[md] = missing
    return byes


@dataclass
class WeekLedger:
    """Who already plays in each week, and how many slots each week used."""
    teams_used: list[set] = field(default_factory=list)
    slots_used: list[int] = field(default_factory=list)

    @classmethod
    def for_weeks(cls, count: int) -> "WeekLedger":
        return cls(teams_used=[set() for _ in range(count)],
                   slots_used=[0] * count)

    def is_free(self, week_index: int, fixture: Fixture, capacity: int) -> bool:
        if self.slots_used[week_index] >= capacity:
            return False
        used = self.teams_used[week_index]
        return not any(p in used for p in fixture.participants())

    def claim(self, week_index: int, fixture: Fixture) -> int:
        """Record the fixture in a week; returns the slot index it took."""
        slot_index = self.slots_used[week_index]
        self.teams_used[week_index].update(fixture.participants())
        self.slots_used[week_index] = slot_index + 1
        return slot_index

    def usage(self, capacity: int) -> str:
        return ", ".join(
            f"Week {i + 1}: {used}/{capacity}"
            for i, used in enumerate(self.slots_used)
        )


def _as_catalog(catalog) -> SlotCatalog:
    if isinstance(catalog, SlotCatalog):
        return catalog
    return SlotCatalog(list(catalog))


def _require_catalog(catalog: SlotCatalog) -> None:
    if not catalog:
        raise InvalidInputError("No timeslots configured; cannot place matches")


def _require_fixtures(fixtures: list[Fixture]) -> None:
    if not fixtures:
        raise InvalidInputError("No fixtures to schedule")


class PlanningStrategy:
    """Base class for the planner's placement algorithms."""

    name = ""

    def plan(self, fixtures: list[Fixture], weeks: list[date],
             catalog: SlotCatalog,
             preferences: Optional[dict[int, Preference]] = None,
             venues: list[Venue] = ()) -> Plan:
        raise NotImplementedError


class MatchdaySequentialStrategy(PlanningStrategy):
    """Map each matchday to the next eligible week (brackets and cups)."""

    name = "matchday-sequential"

    def __init__(self, code_prefix: str = "PO"):
        self.code_prefix = code_prefix

    def plan(self, fixtures, weeks, catalog, preferences=None, venues=()):
        _require_fixtures(fixtures)
        _require_catalog(catalog)

        by_matchday: dict[int, list[Fixture]] = {}
        for f in fixtures:
            by_matchday.setdefault(f.matchday, []).append(f)
        matchdays = sorted(by_matchday)
        require_weeks(weeks, len(matchdays))

        weekdays = catalog.weekdays()
        entries = []
        counter = 0
        for k, md in enumerate(matchdays, 1):
            week = weeks[k - 1]
            md_fixtures = by_matchday[md]

            stages: list[str] = []
            for f in md_fixtures:
                if f.stage not in stages:
                    stages.append(f.stage)

            # Stage s plays on weekdays[s] on odd matchdays, shifted by one on even ones
            next_index: dict[int, int] = defaultdict(int)
            for f in md_fixtures:
                s = stages.index(f.stage)
                weekday = weekdays[(s + k - 1) % len(weekdays)]
                slot_index = next_index[weekday]
                next_index[weekday] += 1
                slot = catalog.slot_for_weekday(weekday, slot_index)

                counter += 1
                entries.append(PlanEntry(
                    code=f.code or f"{self.code_prefix}-{counter:03d}",
                    fixture=f,
                    match_date=slot_date(week, slot),
                    start_time=slot.start_time,
                    venue=slot.venue,
                    details=None,
                    week_index=k - 1,
                    slot_index=slot_index,
                ))

        return Plan(
            entries=entries,
            total_combined_score=0,
            byes=byes_from_fixtures(fixtures),
            strategy=self.name,
        )


class PreferenceGreedyStrategy(PlanningStrategy):
    """Place fixtures one at a time in the best-scoring week (leagues)."""

    name = "preference-greedy"

    def __init__(self, matches_per_week: int = MATCHES_PER_WEEK,
                 code_prefix: str = "REG"):
        if matches_per_week < 1:
            raise InvalidInputError(
                f"Matches per week must be >= 1, got {matches_per_week}"
            )
        self.matches_per_week = matches_per_week
        self.code_prefix = code_prefix

    def _best_choice(self, fixture: Fixture, weeks: list[date],
                     ledger: WeekLedger, catalog: SlotCatalog,
                     preferences: dict[int, Preference],
                     venues: list[Venue]) -> Optional[ScoredSlotChoice]:
        best = None
        for w, week in enumerate(weeks):
            if not ledger.is_free(w, fixture, self.matches_per_week):
                continue
            slot_index = ledger.slots_used[w]
            slot = catalog.slot_at(slot_index)
            h, a = score_pair(preferences, fixture.home, fixture.away, slot, venues)
            # Strictly greater: ties keep the earliest week
            if best is None or h + a > best.combined_score:
                best = ScoredSlotChoice(
                    slot=slot,
                    week=week,
                    week_index=w,
                    slot_index=slot_index,
                    home_score=h,
                    away_score=a,
                    combined_score=h + a,
                    max_possible_score=2 * MAX_TEAM_SCORE,
                )
        return best

    def plan(self, fixtures, weeks, catalog, preferences=None, venues=()):
        _require_fixtures(fixtures)
        _require_catalog(catalog)
        preferences = preferences or {}

        capacity = len(weeks) * self.matches_per_week
        if len(fixtures) > capacity:
            raise InsufficientCapacityError(
                f"Not enough playing weeks: {len(fixtures)} matches need "
                f"{weeks_needed(len(fixtures), self.matches_per_week)} weeks at "
                f"{self.matches_per_week} per week, have {len(weeks)} weeks"
            )

        ledger = WeekLedger.for_weeks(len(weeks))
        entries = []
        total = 0
        team_totals: dict[int, int] = {}
        for f in fixtures:
            for p in f.participants():
                team_totals.setdefault(p, 0)

        for n, f in enumerate(fixtures, 1):
            choice = self._best_choice(f, weeks, ledger, catalog,
                                       preferences, venues)
            if choice is None:
                raise InsufficientCapacityError(
                    f"Cannot place match {n} ({f.describe()}): every week is "
                    f"full or already has one of its teams. "
                    f"Week usage: {ledger.usage(self.matches_per_week)}"
                )
            ledger.claim(choice.week_index, f)

            entries.append(PlanEntry(
                code=f"{self.code_prefix}-{n:03d}",
                fixture=f,
                match_date=slot_date(choice.week, choice.slot),
                start_time=choice.slot.start_time,
                venue=choice.slot.venue,
                details=ScoreDetail(
                    home_score=choice.home_score,
                    away_score=choice.away_score,
                    combined=choice.combined_score,
                    max_combined=choice.max_possible_score,
                ),
                week_index=choice.week_index,
                slot_index=choice.slot_index,
            ))
            total += choice.combined_score
            if f.home is not None:
                team_totals[f.home] += choice.home_score
            if f.away is not None:
                team_totals[f.away] += choice.away_score

        return Plan(
            entries=entries,
            total_combined_score=total,
            team_totals=team_totals,
            byes=byes_from_fixtures(fixtures),
            strategy=self.name,
        )


def build_plan(fixtures: list[Fixture], eligible_weeks: list[date],
               catalog, preferences: Optional[dict[int, Preference]] = None,
               strategy: Optional[PlanningStrategy] = None,
               venues: list[Venue] = (), finalized: bool = True) -> dict:
    """Run one planning pass and report the outcome as a result dict.

    Returns dict with:
    - success: bool
    - message: str
    - plan: Plan, or None on failure (never a partial plan)
    """
    strategy = strategy or PreferenceGreedyStrategy()

    try:
        catalog = _as_catalog(catalog)
        plan = strategy.plan(list(fixtures), list(eligible_weeks), catalog,
                             preferences, venues)
    except SchedulingError as e:
        print(f"  Planning failed: {e}")
        return {"success": False, "message": str(e), "plan": None}

    plan.finalized = finalized
    weeks_used = len({e.week_index for e in plan.entries})
    print(f"  Planned {len(plan.entries)} matches over {weeks_used} weeks "
          f"({strategy.name})")
    if plan.details_available():
        print(f"  Preference score: {plan.total_combined_score}/"
              f"{plan.max_total_score()}")
    return {
        "success": True,
        "message": f"{len(plan.entries)} matches planned over {weeks_used} weeks",
        "plan": plan,
    }


def best_plans(fixtures: list[Fixture], eligible_weeks: list[date],
               catalog, preferences: Optional[dict[int, Preference]] = None,
               strategy: Optional[PlanningStrategy] = None,
               venues: list[Venue] = (), finalized: bool = True,
               samples: int = 40, seed: Optional[int] = None,
               top_percent: float = 0.05) -> dict:
    """Plan the fixtures in several shuffled orders and keep the best plans.

    Greedy placement depends on fixture order, so each sample after the
    first shuffles the order with a random.Random(seed) before planning.
    Samples that fail are dropped. The rest are ranked by total combined
    score (ties keep the earlier sample) and the top fraction is returned.

    Returns dict with:
    - success: bool
    - message: str
    - plan: the best Plan, or None when every sample failed
    - plans: the top Plans, best first
    """
    strategy = strategy or PreferenceGreedyStrategy()
    rng = random.Random(seed)
    runs = max(1, samples)
    fixtures = list(fixtures)
    weeks = list(eligible_weeks)

    results = []
    last_error = ""
    try:
        catalog = _as_catalog(catalog)
    except SchedulingError as e:
        print(f"  Planning failed: {e}")
        return {"success": False, "message": str(e), "plan": None, "plans": []}

    for i in range(runs):
        order = list(fixtures)
        if i > 0:
            rng.shuffle(order)
        try:
            plan = strategy.plan(order, weeks, catalog, preferences, venues)
        except SchedulingError as e:
            last_error = str(e)
            continue
        plan.finalized = finalized
        results.append(plan)

    if not results:
        print(f"  Planning failed in all {runs} samples: {last_error}")
        return {"success": False, "message": last_error, "plan": None, "plans": []}

    results.sort(key=lambda p: p.total_combined_score, reverse=True)
    fraction = max(0.01, min(1.0, top_percent))
    top_count = max(1, math.ceil(len(results) * fraction))
    top = results[:top_count]
    best = top[0]
    print(f"  Sampled {runs} orders, {len(results)} planned ({strategy.name})")
    if best.details_available():
        print(f"  Best preference score: {best.total_combined_score}/"
              f"{best.max_total_score()}")
    return {
        "success": True,
        "message": f"Top {top_count}/{len(results)} plans, best "
                   f"{best.total_combined_score} points over {len(best.entries)} matches",
        "plan": best,
        "plans": top,
    }
