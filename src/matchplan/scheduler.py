"""Scheduling runs for the three competition kinds.

Each function wires the pieces together for one competition:
1. Fixtures - round-robin pairings, a knockout bracket, or playoff groups
2. Calendar - eligible weeks between the competition's dates, minus
   blackouts and weeks other competitions already claimed (listed in the
   config or already committed to the match store)
3. Planner - a SchedulingRun with the strategy that competition uses

The returned run is NotStarted; the caller builds, previews, and then
commits or discards it.
"""

from matchplan.bracket import build_knockout
from matchplan.committer import MatchStore, SchedulingRun
from matchplan.planner import MatchdaySequentialStrategy, PreferenceGreedyStrategy
from matchplan.roundrobin import (
    count_round_robin_fixtures, generate_pairings, generate_playoff_fixtures,
    split_top_bottom,
)
from matchplan.slots import SlotCatalog
from matchplan.weeks import claimed_weeks_from_rows, resolve_eligible_weeks

COMPETITIONS = ("league", "cup", "playoffs")


def eligible_weeks_for(config: dict, start_date, end_date,
                       competition: str = "",
                       store: MatchStore | None = None):
    claimed = list(config["claimed_weeks"])
    if store is not None:
        committed = claimed_weeks_from_rows(store.existing_rows(), competition)
        if committed:
            print(f"  {len(committed)} weeks already hold other competitions")
        claimed.extend(committed)

    weeks = resolve_eligible_weeks(
        start_date, end_date,
        blackouts=config["blackouts"],
        claimed_weeks=claimed,
    )
    print(f"  Calendar: {len(weeks)} eligible weeks "
          f"({start_date} to {end_date})")
    return weeks


def league_run(config: dict, rounds: int | None = None,
               store: MatchStore | None = None, samples: int = 1,
               seed: int | None = None) -> SchedulingRun:
    """Round-robin league, placed week by week on team preferences."""
    season = config["season"]
    rounds = rounds or season["rounds"]
    pool = list(config["teams"])

    fixtures = generate_pairings(pool, rounds=rounds)
    print(f"  Generated {len(fixtures)} league fixtures for {len(pool)} teams "
          f"({rounds} round{'s' if rounds != 1 else ''}, expected "
          f"{count_round_robin_fixtures(len(pool), rounds)})")

    weeks = eligible_weeks_for(config, season["start_date"], season["end_date"],
                               "league", store)
    return SchedulingRun(
        fixtures, weeks, SlotCatalog(config["slots"]),
        preferences=config["preferences"],
        strategy=PreferenceGreedyStrategy(
            matches_per_week=season["matches_per_week"], code_prefix="REG",
        ),
        venues=config["venues"],
        samples=samples,
        seed=seed,
    )


def cup_run(config: dict, seed: int | None = None,
            store: MatchStore | None = None) -> SchedulingRun:
    """Knockout cup; stage k plays in the k-th eligible week."""
    cup = config["cup"]
    if seed is None:
        seed = cup["seed"]

    fixtures = build_knockout(cup["teams"], seed=seed)
    stages = sorted({f.matchday for f in fixtures})
    print(f"  Drew {len(cup['teams'])} teams into {len(stages)} stages "
          f"(seed={seed})")

    weeks = eligible_weeks_for(config, cup["start_date"], cup["end_date"],
                               "cup", store)
    return SchedulingRun(
        fixtures, weeks, SlotCatalog(config["slots"]),
        strategy=MatchdaySequentialStrategy(code_prefix="CUP"),
        venues=config["venues"],
    )


def playoff_run(config: dict, store: MatchStore | None = None,
                samples: int = 1, seed: int | None = None) -> SchedulingRun:
    """Top and bottom playoff groups.

    Groups of team IDs are placed like the league, on team preferences.
    Without explicit groups in the config the playoffs are planned on
    standings positions 1..N (top half vs bottom half), matchday by matchday,
    leaving the plan unfinalized until the league standings are known.
    Positions carry no preferences, so that plan is not scored.
    """
    playoffs = config["playoffs"]
    top, bottom = playoffs["top"], playoffs["bottom"]
    by_position = not top and not bottom
    if by_position:
        positions = list(range(1, len(config["teams"]) + 1))
        top, bottom = split_top_bottom(positions)
        print(f"  Playoffs on positions: top {top}, bottom {bottom}")

    fixtures = generate_playoff_fixtures(top, bottom, rounds=playoffs["rounds"])
    print(f"  Generated {len(fixtures)} playoff fixtures")

    weeks = eligible_weeks_for(config, playoffs["start_date"],
                               playoffs["end_date"], "playoffs", store)
    if by_position:
        return SchedulingRun(
            fixtures, weeks, SlotCatalog(config["slots"]),
            strategy=MatchdaySequentialStrategy(code_prefix="PO"),
            venues=config["venues"],
            finalized=False,
        )
    return SchedulingRun(
        fixtures, weeks, SlotCatalog(config["slots"]),
        preferences=config["preferences"],
        strategy=PreferenceGreedyStrategy(
            matches_per_week=config["season"]["matches_per_week"],
            code_prefix="PO",
        ),
        venues=config["venues"],
        samples=samples,
        seed=seed,
    )


def schedule(config: dict, competition: str = "league",
             rounds: int | None = None, seed: int | None = None,
             store: MatchStore | None = None,
             samples: int = 1) -> SchedulingRun:
    """Prepare a scheduling run for one competition kind."""
    if competition == "league":
        return league_run(config, rounds=rounds, store=store,
                          samples=samples, seed=seed)
    if competition == "cup":
        return cup_run(config, seed=seed, store=store)
    if competition == "playoffs":
        return playoff_run(config, store=store, samples=samples, seed=seed)
    raise ValueError(
        f"Unknown competition {competition!r}; expected one of {COMPETITIONS}"
    )
