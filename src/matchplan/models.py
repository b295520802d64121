"""Data models for the matchplan scheduling engine."""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Fixture:
    """One pairing on one matchday. Home/away are None only for unknown bracket slots."""
    home: Optional[int]
    away: Optional[int]
    round_label: str
    matchday: int
    round_number: int = 1
    stage: str = ""
    code: str = ""
    home_from: str = ""
    away_from: str = ""

    def participants(self) -> list[int]:
        return [p for p in (self.home, self.away) if p is not None]

    def describe(self) -> str:
        home = self.home if self.home is not None else (self.home_from or "?")
        away = self.away if self.away is not None else (self.away_from or "?")
        return f"{home} vs {away} ({self.round_label})"


@dataclass
class BlackoutPeriod:
    """A vacation or other period in which no matches are played."""
    start: date
    end: date
    active: bool = True
    name: str = ""

    def contains(self, d: date) -> bool:
        return self.active and self.start <= d <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        return self.active and self.start <= end and start <= self.end


@dataclass(frozen=True)
class Venue:
    id: int
    name: str


@dataclass(frozen=True)
class Slot:
    """A venue/time combination on a given ISO weekday (1 = Monday)."""
    weekday: int
    start_time: time
    venue: str
    priority: int
    end_time: Optional[time] = None
    venue_id: Optional[int] = None
    timeslot_id: Optional[int] = None

    @property
    def start_label(self) -> str:
        return self.start_time.strftime("%H:%M")

    @property
    def label(self) -> str:
        if self.end_time is None:
            return self.start_label
        return f"{self.start_label}-{self.end_time.strftime('%H:%M')}"


@dataclass
class Preference:
    """A team's preferred play moments. Empty lists mean "not provided"."""
    days: list[int | str] = field(default_factory=list)
    timeslots: list[str] = field(default_factory=list)
    venues: list[int] = field(default_factory=list)
    notes: str = ""

    @property
    def provided(self) -> int:
        return sum(1 for dim in (self.days, self.timeslots, self.venues) if dim)


@dataclass(frozen=True)
class PreferenceScore:
    value: int
    max: int
    matched: int = 0
    provided: int = 0


@dataclass(frozen=True)
class ScoredSlotChoice:
    """A candidate (week, slot) for one fixture, with both teams' scores."""
    slot: Slot
    week: date
    week_index: int
    slot_index: int
    home_score: int
    away_score: int
    combined_score: int
    max_possible_score: int


@dataclass(frozen=True)
class ScoreDetail:
    home_score: int
    away_score: int
    combined: int
    max_combined: int

    def as_dict(self) -> dict:
        return {
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "combined": self.combined,
            "maxCombined": self.max_combined,
        }


@dataclass(frozen=True)
class PlanEntry:
    """A fully dated and sited match, ready to be persisted as-is."""
    code: str
    fixture: Fixture
    match_date: date
    start_time: time
    venue: str
    details: Optional[ScoreDetail] = None
    week_index: int = 0
    slot_index: int = 0

    @property
    def home(self) -> Optional[int]:
        return self.fixture.home

    @property
    def away(self) -> Optional[int]:
        return self.fixture.away

    def to_row(self, competition: str = "", finalized: bool = True) -> dict:
        """The persisted match row. The committer writes exactly this."""
        return {
            "unique_number": self.code,
            "round_label": self.fixture.round_label,
            "home_team_id": self.fixture.home,
            "away_team_id": self.fixture.away,
            "match_date": f"{self.match_date.isoformat()}T{self.start_time.strftime('%H:%M')}",
            "venue": self.venue,
            "is_finalized": finalized,
            "competition": competition,
        }

    def to_preview_row(self, competition: str = "", finalized: bool = True) -> dict:
        row = self.to_row(competition, finalized)
        row["details"] = self.details.as_dict() if self.details else None
        return row


@dataclass
class Plan:
    """Ordered, non-persisted output of one scheduling run."""
    entries: list[PlanEntry] = field(default_factory=list)
    total_combined_score: int = 0
    team_totals: dict[int, int] = field(default_factory=dict)
    byes: dict[int, list[int]] = field(default_factory=dict)  # matchday -> idle participants
    strategy: str = ""
    finalized: bool = True

    def __len__(self) -> int:
        return len(self.entries)

    def details_available(self) -> bool:
        return any(e.details is not None for e in self.entries)

    def max_total_score(self) -> int:
        return sum(e.details.max_combined for e in self.entries if e.details)

    def chronological(self) -> list[PlanEntry]:
        return sorted(self.entries,
                      key=lambda e: (e.match_date, e.start_time, e.slot_index, e.code))

    def rows(self, competition: str = "") -> list[dict]:
        return [e.to_row(competition, self.finalized) for e in self.entries]

    def preview_rows(self, competition: str = "") -> list[dict]:
        return [e.to_preview_row(competition, self.finalized) for e in self.entries]


class RunState(Enum):
    NOT_STARTED = "NotStarted"
    PLAN_BUILT = "PlanBuilt"
    COMMITTED = "Committed"
    DISCARDED = "Discarded"
