"""Preference scoring: how well a timeslot suits a team's preferred play moments.

Each team scores 0..MAX_TEAM_SCORE for a slot. The score depends on how many
preference dimensions (days, timeslots, venues) the team provided and how
many of those the slot satisfies:

    provided  matched -> score
    1         1          3
    2         2 / 1      3 / 1
    3         3 / 2 / 1  3 / 2 / 1

A team without preferences scores 0 everywhere, so it never pulls a match
towards a particular week.
"""

from typing import Optional

from matchplan.models import Preference, PreferenceScore, Slot, Venue

MAX_TEAM_SCORE = 3

_DAY_NAMES = {
    "ma": 1, "maandag": 1, "mon": 1, "monday": 1,
    "di": 2, "dinsdag": 2, "tue": 2, "tuesday": 2,
    "wo": 3, "woensdag": 3, "wed": 3, "wednesday": 3,
    "do": 4, "donderdag": 4, "thu": 4, "thursday": 4,
    "vr": 5, "vrijdag": 5, "fri": 5, "friday": 5,
    "za": 6, "zaterdag": 6, "sat": 6, "saturday": 6,
    "zo": 7, "zondag": 7, "sun": 7, "sunday": 7,
}

_SCORE_TABLE = {
    1: {1: 3},
    2: {2: 3, 1: 1},
    3: {3: 3, 2: 2, 1: 1},
}


def normalize_day(entry) -> Optional[int]:
    """Map a day entry ("maandag", "Mon", 1) to an ISO weekday, or None."""
    if isinstance(entry, bool):
        return None
    if isinstance(entry, int):
        return entry if 1 <= entry <= 7 else None
    if isinstance(entry, str):
        s = entry.strip().lower()
        if s.isdigit():
            return normalize_day(int(s))
        return _DAY_NAMES.get(s)
    return None


def _norm(s) -> str:
    return str(s).strip().lower()


def resolve_venue_id(slot: Slot, venues: list[Venue] = ()) -> Optional[int]:
    if slot.venue_id is not None:
        return slot.venue_id
    for v in venues:
        if v.name == slot.venue:
            return v.id
    return None


def _matches(pref: Preference, slot: Slot, venues: list[Venue]) -> int:
    matched = 0

    if pref.days:
        days = {normalize_day(d) for d in pref.days}
        if slot.weekday in days:
            matched += 1

    if pref.timeslots:
        wanted = {_norm(t) for t in pref.timeslots}
        candidates = {_norm(slot.label), _norm(slot.start_label)}
        if slot.timeslot_id is not None:
            candidates.add(str(slot.timeslot_id))
        if wanted & candidates:
            matched += 1

    if pref.venues:
        venue_id = resolve_venue_id(slot, venues)
        if venue_id is not None and venue_id in set(pref.venues):
            matched += 1

    return matched


def score_slot(pref: Optional[Preference], slot: Slot,
               venues: list[Venue] = ()) -> PreferenceScore:
    """Score one team's preference against a slot. Never raises on missing data."""
    if pref is None or pref.provided == 0:
        return PreferenceScore(value=0, max=MAX_TEAM_SCORE)
    provided = pref.provided
    matched = _matches(pref, slot, venues)
    value = _SCORE_TABLE.get(provided, {}).get(matched, 0)
    return PreferenceScore(value=value, max=MAX_TEAM_SCORE,
                           matched=matched, provided=provided)


def score_pair(preferences: dict[int, Preference], home: Optional[int],
               away: Optional[int], slot: Slot,
               venues: list[Venue] = ()) -> tuple[int, int]:
    """Home and away scores for a slot; unknown participants score 0."""
    prefs = preferences or {}
    h = score_slot(prefs.get(home), slot, venues).value
    a = score_slot(prefs.get(away), slot, venues).value
    return h, a
