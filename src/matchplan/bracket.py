"""Knockout cup brackets.

Every stage pairs its entrants the way the circle method pairs the first
matchday (first vs last, second vs second-to-last, ...). With an odd number of
entrants the bye calculator picks who sits out; that participant goes straight
into the next stage, after the winners of the stage's matches.
"""

import random

from matchplan.errors import InvalidInputError
from matchplan.models import Fixture
from matchplan.roundrobin import bye_for_matchday, generate_pairings


def _stage(entrant_count: int, stage_number: int) -> tuple[str, str]:
    """(stage name, code prefix) for a stage with this many entrants."""
    if entrant_count == 2:
        return "Final", "FINAL"
    if entrant_count <= 4:
        return "Semi-final", "SF"
    if entrant_count <= 8:
        return "Quarter-final", "QF"
    if entrant_count <= 16:
        return "Round of 16", "R16"
    return f"Round {stage_number}", f"R{stage_number}"


def build_knockout(pool, seed: int | None = None) -> list[Fixture]:
    """Build every stage of a single-elimination bracket.

    First-stage fixtures carry team ids; later stages hold winner
    placeholders (home/away None, home_from/away_from = "W <code>") except for
    participants that reached the stage through a bye. Stage k is matchday k.

    With a seed the draw is shuffled reproducibly; without one the pool order
    is the draw.
    """
    entrants = list(pool)
    if len(entrants) < 2:
        raise InvalidInputError(
            f"A cup needs at least 2 teams, got {len(entrants)}"
        )
    if len(set(entrants)) != len(entrants):
        raise InvalidInputError("Cup pool contains duplicate teams")
    if seed is not None:
        random.Random(seed).shuffle(entrants)

    # Each entrant is (team id or None, source description)
    current = [(team, "") for team in entrants]
    fixtures = []
    stage_number = 1
    while len(current) > 1:
        name, prefix = _stage(len(current), stage_number)
        indices = list(range(len(current)))
        first_matchday = [f for f in generate_pairings(indices) if f.matchday == 1]

        advancing = []
        for m, pairing in enumerate(first_matchday, 1):
            code = prefix if prefix == "FINAL" else f"{prefix}-{m}"
            home, home_from = current[pairing.home]
            away, away_from = current[pairing.away]
            fixtures.append(Fixture(
                home=home,
                away=away,
                round_label=name if prefix == "FINAL" else f"{name} {m}",
                matchday=stage_number,
                round_number=stage_number,
                stage=name,
                code=code,
                home_from=home_from,
                away_from=away_from,
            ))
            advancing.append((None, f"W {code}"))

        bye_index = bye_for_matchday(indices, 1)
        if bye_index is not None:
            advancing.append(current[bye_index])

        current = advancing
        stage_number += 1

    return fixtures


def knockout_byes(fixtures: list[Fixture]) -> dict[int, list[int]]:
    """Participants that skipped a stage, keyed by the matchday they sat out.

    A known participant appearing in a later stage without a feeder match
    must have had a bye in the stage before it.
    """
    byes: dict[int, list[int]] = {}
    for f in fixtures:
        if f.matchday <= 1:
            continue
        for team, source in ((f.home, f.home_from), (f.away, f.away_from)):
            if team is not None and not source:
                byes.setdefault(f.matchday - 1, []).append(team)
    return byes


def next_match(fixtures: list[Fixture], code: str) -> tuple[str, str] | None:
    """Where the winner of `code` goes: (next match code, "home" | "away")."""
    feeder = f"W {code}"
    for f in fixtures:
        if f.home_from == feeder:
            return f.code, "home"
        if f.away_from == feeder:
            return f.code, "away"
    return None
