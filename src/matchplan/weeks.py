"""Calendar resolution: which Mondays of the season can host a matchday."""

import math
from datetime import date, timedelta

from matchplan.errors import InsufficientCapacityError, InvalidInputError
from matchplan.models import BlackoutPeriod


def monday_of(d: date) -> date:
    """Return the Monday of d's week (d itself if it is a Monday)."""
    return d - timedelta(days=d.weekday())


def weeks_needed(total_matches: int, matches_per_week: int) -> int:
    if matches_per_week < 1:
        raise InvalidInputError(
            f"Matches per week must be >= 1, got {matches_per_week}"
        )
    return math.ceil(total_matches / matches_per_week)


def is_blacked_out(d: date, blackouts: list[BlackoutPeriod]) -> bool:
    return any(b.contains(d) for b in blackouts)


def week_blacked_out(monday: date, blackouts: list[BlackoutPeriod]) -> bool:
    """True when any active blackout touches a day of the week starting on monday."""
    sunday = monday + timedelta(days=6)
    return any(b.overlaps(monday, sunday) for b in blackouts)


def claimed_weeks_from_rows(rows: list[dict], competition: str) -> list[date]:
    """Mondays of the weeks that committed rows of other competitions occupy."""
    weeks = set()
    for row in rows:
        if row.get("competition") == competition or not row.get("match_date"):
            continue
        weeks.add(monday_of(date.fromisoformat(row["match_date"][:10])))
    return sorted(weeks)


def resolve_eligible_weeks(start: date, end: date,
                           blackouts: list[BlackoutPeriod] = (),
                           claimed_weeks: list[date] = ()) -> list[date]:
    """Build the ordered list of week-start Mondays usable for scheduling.

    The start date is moved back to its Monday; every following Monday up to
    and including the end date is a candidate. A candidate is dropped when
    any day of its week (Monday to Sunday) lies inside an active blackout
    period, or when its week already holds fixtures of another competition
    (claimed dates may be any day of that week).
    """
    if start is None or end is None:
        raise InvalidInputError("Start and end date are required")
    if end < start:
        raise InvalidInputError(f"End date {end} is before start date {start}")

    claimed = {monday_of(d) for d in claimed_weeks}
    weeks = []
    current = monday_of(start)
    while current <= end:
        if not week_blacked_out(current, blackouts) and current not in claimed:
            weeks.append(current)
        current += timedelta(days=7)
    return weeks


def require_weeks(weeks: list[date], needed: int) -> None:
    """Raise if fewer eligible weeks exist than matchdays to place."""
    if len(weeks) < needed:
        raise InsufficientCapacityError(
            f"Not enough playing weeks: need {needed} matchdays, "
            f"have {len(weeks)} weeks"
        )
