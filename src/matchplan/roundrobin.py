"""Round-robin pairing generation (circle method) and bye calculation.

Pairings and byes are both derived from rotation_for_matchday, so the
matchday a participant sits out is always the one on which the pairing
generator left it without an opponent.
"""

from dataclasses import replace

from matchplan.errors import InvalidInputError
from matchplan.models import Fixture

_BYE = "__BYE__"


def _validate_pool(pool) -> list[int]:
    pool = list(pool)
    if len(pool) < 2:
        raise InvalidInputError(
            f"A pool needs at least 2 participants, got {len(pool)}"
        )
    if any(p is None for p in pool):
        raise InvalidInputError("Pool contains an empty participant id")
    seen = set()
    dupes = []
    for p in pool:
        if p in seen:
            dupes.append(p)
        seen.add(p)
    if dupes:
        raise InvalidInputError(
            f"Pool contains duplicate participants: {', '.join(map(str, dupes))}"
        )
    return pool


def working_pool(pool) -> list:
    """The pool as the circle method sees it: odd pools get a bye sentinel."""
    working = _validate_pool(pool)
    if len(working) % 2 == 1:
        working.append(_BYE)
    return working


def rotation_for_matchday(working: list, matchday: int) -> list:
    """Circle-method order for a matchday (1-based) within one cycle.

    Position 0 stays fixed; the remaining entries are rotated right by
    matchday - 1 places. Matchdays past the cycle length wrap around.
    """
    if matchday < 1:
        raise InvalidInputError(f"Matchday must be >= 1, got {matchday}")
    head, tail = working[:1], working[1:]
    if not tail:
        return list(working)
    k = (matchday - 1) % len(tail)
    if k == 0:
        return list(working)
    return head + tail[-k:] + tail[:-k]


def _pairs(order: list) -> list[tuple]:
    n = len(order)
    return [(order[i], order[n - 1 - i]) for i in range(n // 2)]


def matchdays_per_round(n: int) -> int:
    """Matchdays in one full cycle: n-1 for even pools, n for odd pools."""
    return n - 1 if n % 2 == 0 else n


def count_round_robin_fixtures(n: int, rounds: int = 1) -> int:
    return n * (n - 1) // 2 * rounds


def generate_pairings(pool, rounds: int = 1, label: str = "Matchday",
                      stage: str = "") -> list[Fixture]:
    """Generate round-robin fixtures using the circle method.

    For N participants: N-1 matchdays per round if even, N matchdays with one
    bye each if odd. Odd-numbered rounds keep the natural home/away order,
    even-numbered rounds swap it. Matchdays are numbered globally across
    rounds: (round - 1) * cycle + local matchday.

    Returns fixtures ordered by matchday, then by pairing index.
    """
    if not isinstance(rounds, int) or rounds < 1:
        raise InvalidInputError(f"Rounds must be a positive integer, got {rounds!r}")

    working = working_pool(pool)
    cycle = len(working) - 1

    fixtures = []
    for rnd in range(1, rounds + 1):
        for local in range(1, cycle + 1):
            matchday = (rnd - 1) * cycle + local
            order = rotation_for_matchday(working, local)
            for home, away in _pairs(order):
                if home == _BYE or away == _BYE:
                    continue
                if rnd % 2 == 0:
                    home, away = away, home
                fixtures.append(Fixture(
                    home=home,
                    away=away,
                    round_label=f"{label} {matchday}",
                    matchday=matchday,
                    round_number=rnd,
                    stage=stage,
                ))
    return fixtures


def bye_for_matchday(pool, matchday: int):
    """Return the participant without an opponent on a matchday, or None.

    Matchday counts globally across rounds, like generate_pairings numbers
    them. Even pools never have a bye.
    """
    working = working_pool(pool)
    if _BYE not in working:
        if matchday < 1:
            raise InvalidInputError(f"Matchday must be >= 1, got {matchday}")
        return None
    order = rotation_for_matchday(working, matchday)
    for home, away in _pairs(order):
        if home == _BYE:
            return away
        if away == _BYE:
            return home
    return None


def byes_by_matchday(pool, rounds: int = 1) -> dict[int, int]:
    """Map every matchday of a run to its bye participant (odd pools only)."""
    pool = _validate_pool(pool)
    if len(pool) % 2 == 0:
        return {}
    cycle = matchdays_per_round(len(pool))
    return {md: bye_for_matchday(pool, md) for md in range(1, cycle * rounds + 1)}


def split_top_bottom(ranking: list[int]) -> tuple[list[int], list[int]]:
    """Split a ranking into top and bottom halves; the bottom half takes the odd one."""
    half = len(ranking) // 2
    return list(ranking[:half]), list(ranking[half:])


def generate_playoff_fixtures(top: list[int], bottom: list[int],
                              rounds: int = 2) -> list[Fixture]:
    """Round-robin each playoff group separately, interleaved by matchday.

    Both groups share matchday numbers, so a matchday holds one stage per
    group. An empty group is skipped.
    """
    groups = []
    if top:
        groups.append(generate_pairings(top, rounds, stage="top_playoff"))
    if bottom:
        groups.append(generate_pairings(bottom, rounds, stage="bottom_playoff"))
    if not groups:
        raise InvalidInputError("Playoffs need at least one group of 2 or more")
    overlap = set(top) & set(bottom)
    if overlap:
        raise InvalidInputError(
            f"Participants in both playoff groups: {', '.join(map(str, sorted(overlap)))}"
        )

    fixtures = []
    last_matchday = max(f.matchday for g in groups for f in g)
    for md in range(1, last_matchday + 1):
        for g in groups:
            for f in g:
                if f.matchday == md:
                    fixtures.append(replace(
                        f, round_label=f"{f.stage}_r{f.round_number} {md}"
                    ))
    return fixtures


def verify_pairings(fixtures: list[Fixture], pool: list[int],
                    rounds: int = 1) -> dict:
    """Verify round-robin fixtures are complete and conflict-free.

    Returns dict with:
    - valid: bool
    - errors: list of error strings
    - pair_counts: dict of (low, high) -> count
    - fixtures_per_participant: dict of participant -> fixture count
    """
    errors = []
    pair_counts: dict[tuple[int, int], int] = {}
    fixtures_per_participant: dict[int, int] = {p: 0 for p in pool}
    home_counts: dict[tuple[int, int], int] = {}

    by_matchday: dict[int, set] = {}
    for f in fixtures:
        seen = by_matchday.setdefault(f.matchday, set())
        for p in (f.home, f.away):
            if p in seen:
                errors.append(f"Matchday {f.matchday}: {p} appears twice")
            seen.add(p)
            fixtures_per_participant[p] = fixtures_per_participant.get(p, 0) + 1

        key = (min(f.home, f.away), max(f.home, f.away))
        pair_counts[key] = pair_counts.get(key, 0) + 1
        home_counts[(f.home, f.away)] = home_counts.get((f.home, f.away), 0) + 1

    for i, a in enumerate(pool):
        for b in pool[i + 1:]:
            key = (min(a, b), max(a, b))
            count = pair_counts.get(key, 0)
            if count != rounds:
                errors.append(
                    f"{a} vs {b}: played {count} times (expected {rounds})"
                )
            elif rounds >= 2:
                # Home/away alternate, so each side hosts floor/ceil of rounds.
                if (home_counts.get((a, b), 0) < rounds // 2
                        or home_counts.get((b, a), 0) < rounds // 2):
                    errors.append(f"{a} vs {b}: home/away not reversed")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "pair_counts": pair_counts,
        "fixtures_per_participant": fixtures_per_participant,
    }
