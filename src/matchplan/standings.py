"""League standings and position-based playoff finalization.

Playoffs can be planned before the regular season ends, using positions
1..N as participants. Once the standings are final, finalize_plan swaps the
positions for the teams holding them. Dates and venues stay as planned.
"""

from dataclasses import replace

from matchplan.errors import InvalidInputError
from matchplan.models import Plan

POINTS_WIN = 3
POINTS_DRAW = 1


def compute_standings(team_ids: list[int], results: list[dict]) -> list[dict]:
    """Rank teams by points, goal difference, goals for, then team id.

    Results are match rows with home_team_id, away_team_id, home_score and
    away_score; rows without both scores are not played yet and are skipped.
    """
    table = {
        t: {"team_id": t, "points": 0, "played": 0, "wins": 0, "draws": 0,
            "losses": 0, "goals_for": 0, "goals_against": 0}
        for t in team_ids
    }
    for r in results:
        h, a = r.get("home_team_id"), r.get("away_team_id")
        hs, as_ = r.get("home_score"), r.get("away_score")
        if hs is None or as_ is None or h not in table or a not in table:
            continue
        home, away = table[h], table[a]
        home["played"] += 1
        away["played"] += 1
        home["goals_for"] += hs
        home["goals_against"] += as_
        away["goals_for"] += as_
        away["goals_against"] += hs
        if hs > as_:
            home["wins"] += 1
            home["points"] += POINTS_WIN
            away["losses"] += 1
        elif hs < as_:
            away["wins"] += 1
            away["points"] += POINTS_WIN
            home["losses"] += 1
        else:
            home["draws"] += 1
            away["draws"] += 1
            home["points"] += POINTS_DRAW
            away["points"] += POINTS_DRAW

    rows = list(table.values())
    for row in rows:
        row["goal_difference"] = row["goals_for"] - row["goals_against"]
    rows.sort(key=lambda r: (-r["points"], -r["goal_difference"],
                             -r["goals_for"], r["team_id"]))
    for i, row in enumerate(rows, 1):
        row["position"] = i
    return rows


def positions_to_teams(standings: list[dict]) -> dict[int, int]:
    return {row["position"]: row["team_id"] for row in standings}


def _remap_plan(plan: Plan, mapping: dict[int, int], finalized: bool) -> Plan:
    def _map(p):
        if p is None:
            return None
        if p not in mapping:
            raise InvalidInputError(f"No team known for participant {p}")
        return mapping[p]

    entries = []
    for e in plan.entries:
        fixture = replace(e.fixture, home=_map(e.fixture.home),
                          away=_map(e.fixture.away))
        entries.append(replace(e, fixture=fixture))

    return Plan(
        entries=entries,
        total_combined_score=plan.total_combined_score,
        team_totals={_map(p): v for p, v in plan.team_totals.items()},
        byes={md: [_map(p) for p in ps] for md, ps in plan.byes.items()},
        strategy=plan.strategy,
        finalized=finalized,
    )


def finalize_plan(plan: Plan, position_to_team: dict[int, int]) -> Plan:
    """Return a new Plan with playoff positions replaced by team ids."""
    if plan.finalized:
        raise InvalidInputError("Plan is already finalized")
    return _remap_plan(plan, position_to_team, finalized=True)


def unfinalize_plan(plan: Plan, position_to_team: dict[int, int]) -> Plan:
    """Return a new Plan with team ids turned back into positions."""
    if not plan.finalized:
        raise InvalidInputError("Plan is not finalized")
    team_to_position = {t: p for p, t in position_to_team.items()}
    return _remap_plan(plan, team_to_position, finalized=False)
