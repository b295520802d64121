"""Plan persistence: write a previewed Plan's rows exactly as they were shown.

The committer never recomputes dates, venues or scores. It asks each
PlanEntry for its row and hands the whole batch to the store in one call.
"""

import csv
from io import StringIO
from pathlib import Path
from typing import Optional

from matchplan.errors import ConflictError
from matchplan.models import Plan, RunState
from matchplan.planner import PlanningStrategy, best_plans, build_plan

ROW_FIELDS = [
    "unique_number", "round_label", "home_team_id", "away_team_id",
    "match_date", "venue", "is_finalized", "competition",
]


class MatchStore:
    """Where committed match rows end up. insert_matches is all-or-nothing."""

    def insert_matches(self, rows: list[dict]) -> None:
        raise NotImplementedError

    def existing_rows(self) -> list[dict]:
        return []


def _check_unique(rows: list[dict], existing: set[str]) -> None:
    seen = set(existing)
    for row in rows:
        number = row["unique_number"]
        if number in seen:
            raise ConflictError(f"Match number {number} already exists")
        seen.add(number)


class InMemoryMatchStore(MatchStore):
    """Keeps rows in a list; rejects duplicate match numbers."""

    def __init__(self):
        self.rows: list[dict] = []

    def existing_rows(self):
        return list(self.rows)

    def insert_matches(self, rows):
        _check_unique(rows, {r["unique_number"] for r in self.rows})
        self.rows.extend(dict(r) for r in rows)


def format_rows_csv(rows: list[dict]) -> str:
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=ROW_FIELDS, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({
            k: ("" if row.get(k) is None else row.get(k)) for k in ROW_FIELDS
        })
    return output.getvalue()


def read_rows_csv(path: str | Path) -> list[dict]:
    """Read committed rows back; empty team columns become None."""
    rows = []
    with open(path, newline="") as f:
        for row in csv.DictReader(f):
            for key in ("home_team_id", "away_team_id"):
                row[key] = int(row[key]) if row[key] else None
            row["is_finalized"] = row["is_finalized"] == "True"
            rows.append(row)
    return rows


class CsvMatchStore(MatchStore):
    """Appends rows to a CSV file, rewriting the file in a single write."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def existing_rows(self) -> list[dict]:
        if not self.path.exists():
            return []
        return read_rows_csv(self.path)

    def insert_matches(self, rows):
        existing = self.existing_rows()
        _check_unique(rows, {r["unique_number"] for r in existing})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(format_rows_csv(existing + list(rows)))


class PlanCommitter:
    """Persist a Plan's rows verbatim."""

    def __init__(self, store: MatchStore, competition: str = "league"):
        self.store = store
        self.competition = competition

    def commit(self, plan: Optional[Plan]) -> dict:
        if plan is None:
            return {"success": False, "message": "No plan to commit"}
        rows = plan.rows(self.competition)
        try:
            self.store.insert_matches(rows)
        except ConflictError as e:
            return {"success": False, "message": f"Commit rejected: {e}"}
        except OSError as e:
            return {"success": False, "message": f"Could not write matches: {e}"}
        except Exception as e:
            return {"success": False,
                    "message": f"Commit failed ({type(e).__name__}): {e}"}
        return {"success": True, "message": f"{len(rows)} matches created"}


class SchedulingRun:
    """One scheduling run: NotStarted -> PlanBuilt -> Committed | Discarded.

    A built plan is never edited; changed inputs need a new run.
    """

    def __init__(self, fixtures, eligible_weeks, catalog, preferences=None,
                 strategy: Optional[PlanningStrategy] = None, venues=(),
                 finalized: bool = True, samples: int = 1,
                 seed: Optional[int] = None):
        self.fixtures = list(fixtures)
        self.eligible_weeks = list(eligible_weeks)
        self.catalog = catalog
        self.preferences = preferences
        self.strategy = strategy
        self.venues = venues
        self.finalized = finalized
        self.samples = samples
        self.seed = seed
        self.state = RunState.NOT_STARTED
        self.plan: Optional[Plan] = None
        self.alternatives: list[Plan] = []

    def _refuse(self, action: str) -> dict:
        return {"success": False,
                "message": f"Cannot {action}: run is {self.state.value}"}

    def build(self) -> dict:
        if self.state is not RunState.NOT_STARTED:
            return self._refuse("build")
        if self.samples > 1:
            result = best_plans(self.fixtures, self.eligible_weeks, self.catalog,
                                self.preferences, self.strategy, self.venues,
                                finalized=self.finalized, samples=self.samples,
                                seed=self.seed)
        else:
            result = build_plan(self.fixtures, self.eligible_weeks, self.catalog,
                                self.preferences, self.strategy, self.venues,
                                finalized=self.finalized)
        if result["success"]:
            self.plan = result["plan"]
            self.alternatives = result.get("plans", [])
            self.state = RunState.PLAN_BUILT
        return result

    def commit(self, committer: PlanCommitter) -> dict:
        if self.state is not RunState.PLAN_BUILT:
            return self._refuse("commit")
        result = committer.commit(self.plan)
        if result["success"]:
            self.state = RunState.COMMITTED
        return result

    def discard(self) -> dict:
        if self.state is not RunState.PLAN_BUILT:
            return self._refuse("discard")
        self.plan = None
        self.alternatives = []
        self.state = RunState.DISCARDED
        return {"success": True, "message": "Plan discarded"}
