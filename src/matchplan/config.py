"""Config loading and validation for the matchplan scheduler."""

from datetime import date, time
from pathlib import Path

import yaml

from matchplan.models import BlackoutPeriod, Preference, Slot, Venue
from matchplan.planner import MATCHES_PER_WEEK
from matchplan.preferences import normalize_day


def parse_time(s: str) -> time:
    """Parse time strings like '20:00', '8pm', '7:30pm'."""
    s = s.strip()
    s_lower = s.lower()

    is_pm = s_lower.endswith("pm")
    is_am = s_lower.endswith("am")

    # Strip am/pm suffix
    s_clean = s_lower
    if is_pm or is_am:
        s_clean = s_clean[:-2].strip()

    if ":" in s_clean:
        parts = s_clean.split(":")
        h = int(parts[0])
        m = int(parts[1])
    else:
        h = int(s_clean)
        m = 0

    if is_pm and h < 12:
        h += 12
    elif is_am and h == 12:
        h = 0

    return time(h, m)


def _time_value(value) -> time:
    # YAML 1.1 reads an unquoted 20:00 as the base-60 integer 1200
    if isinstance(value, int):
        return time(value // 60, value % 60)
    return parse_time(str(value))


def parse_date(s: str) -> date:
    """Parse date string YYYY-MM-DD."""
    parts = s.strip().split("-")
    return date(int(parts[0]), int(parts[1]), int(parts[2]))


def parse_date_range(s: str) -> tuple[date, date]:
    """Parse 'YYYY-MM-DD:YYYY-MM-DD' into (start, end) dates."""
    parts = s.split(":")
    return parse_date(parts[0]), parse_date(parts[1])


def parse_weekday(value) -> int:
    """ISO weekday from 'Monday', 'maandag', 'Mon' or 1-7."""
    day = normalize_day(value)
    if day is None:
        raise ValueError(f"Unknown day {value!r}")
    return day


def _parse_blackout(entry) -> BlackoutPeriod:
    if isinstance(entry, dict):
        return BlackoutPeriod(
            start=parse_date(str(entry["start"])),
            end=parse_date(str(entry.get("end", entry["start"]))),
            active=bool(entry.get("active", True)),
            name=entry.get("name", ""),
        )
    s = str(entry)
    if ":" in s:
        start, end = parse_date_range(s)
    else:
        start = end = parse_date(s)
    return BlackoutPeriod(start=start, end=end)


def _require(raw: dict, key: str):
    if key not in raw or raw[key] is None:
        raise ValueError(f"Config is missing the '{key}' section")
    return raw[key]


def load_config(path: str | Path) -> dict:
    """Load and validate config YAML, returning structured data.

    Returns dict with:
    - season: {name, start_date, end_date, matches_per_week, rounds}
    - blackouts: list[BlackoutPeriod]
    - venues: list[Venue]
    - slots: list[Slot]
    - teams: dict[id -> name]
    - preferences: dict[id -> Preference]
    - claimed_weeks: list[date]
    - playoffs: {top, bottom, rounds, start_date, end_date}
    - cup: {seed, start_date, end_date}
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    errors = []

    # Season
    raw_season = _require(raw, "season")
    season = {
        "name": raw_season.get("name", ""),
        "start_date": parse_date(str(raw_season["start_date"])),
        "end_date": parse_date(str(raw_season["end_date"])),
        "matches_per_week": int(raw_season.get("matches_per_week", MATCHES_PER_WEEK)),
        "rounds": int(raw_season.get("rounds", 1)),
    }
    if season["end_date"] < season["start_date"]:
        errors.append("Season ends before it starts")

    blackouts = [_parse_blackout(b) for b in raw.get("blackouts", []) or []]

    # Venues
    venues: list[Venue] = []
    for v in _require(raw, "venues"):
        venues.append(Venue(id=int(v["id"]), name=v["name"]))
    venue_by_id = {v.id: v for v in venues}
    venue_by_name = {v.name: v for v in venues}

    # Timeslots
    slots: list[Slot] = []
    for i, ts in enumerate(_require(raw, "timeslots"), 1):
        ref = ts["venue"]
        venue = venue_by_id.get(ref) if isinstance(ref, int) else venue_by_name.get(ref)
        if venue is None:
            errors.append(f"Timeslot {i} refers to unknown venue {ref!r}")
            continue
        slots.append(Slot(
            weekday=parse_weekday(ts["day"]),
            start_time=_time_value(ts["start"]),
            end_time=_time_value(ts["end"]) if ts.get("end") is not None else None,
            venue=venue.name,
            venue_id=venue.id,
            priority=int(ts.get("priority", i)),
            timeslot_id=int(ts.get("id", i)),
        ))

    # Teams and their preferred play moments
    teams: dict[int, str] = {}
    preferences: dict[int, Preference] = {}
    for t in _require(raw, "teams"):
        team_id = int(t["id"])
        if team_id in teams:
            errors.append(f"Team id {team_id} listed twice")
        teams[team_id] = t.get("name", str(team_id))
        prefs = t.get("preferences") or {}
        if not prefs:
            continue
        pref = Preference(
            days=list(prefs.get("days", []) or []),
            timeslots=[str(x) for x in prefs.get("timeslots", []) or []],
            venues=[int(x) for x in prefs.get("venues", []) or []],
            notes=prefs.get("notes", "") or "",
        )
        for d in pref.days:
            if normalize_day(d) is None:
                errors.append(f"Team {team_id}: unknown preferred day {d!r}")
        for vid in pref.venues:
            if vid not in venue_by_id:
                errors.append(f"Team {team_id}: unknown preferred venue {vid}")
        preferences[team_id] = pref

    claimed_weeks = [parse_date(str(d)) for d in raw.get("claimed_weeks", []) or []]

    raw_playoffs = raw.get("playoffs", {}) or {}
    playoffs = {
        "top": [int(p) for p in raw_playoffs.get("top", []) or []],
        "bottom": [int(p) for p in raw_playoffs.get("bottom", []) or []],
        "rounds": int(raw_playoffs.get("rounds", 2)),
        "start_date": parse_date(str(raw_playoffs["start_date"]))
        if "start_date" in raw_playoffs else season["start_date"],
        "end_date": parse_date(str(raw_playoffs["end_date"]))
        if "end_date" in raw_playoffs else season["end_date"],
    }

    raw_cup = raw.get("cup", {}) or {}
    cup = {
        "seed": raw_cup.get("seed"),
        "teams": [int(t) for t in raw_cup.get("teams", []) or []] or list(teams),
        "start_date": parse_date(str(raw_cup["start_date"]))
        if "start_date" in raw_cup else season["start_date"],
        "end_date": parse_date(str(raw_cup["end_date"]))
        if "end_date" in raw_cup else season["end_date"],
    }

    if errors:
        print("Config validation errors:")
        for e in errors:
            print(f"  {e}")

    return {
        "season": season,
        "blackouts": blackouts,
        "venues": venues,
        "slots": slots,
        "teams": teams,
        "preferences": preferences,
        "claimed_weeks": claimed_weeks,
        "playoffs": playoffs,
        "cup": cup,
    }
