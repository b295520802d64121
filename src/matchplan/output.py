"""Output formatters for matchplan plans."""

import csv
import json
from datetime import date
from io import StringIO
from pathlib import Path

from matchplan.models import Plan, PlanEntry

PREVIEW_FIELDS = [
    "unique_number", "round_label", "home_team_id", "away_team_id",
    "match_date", "venue", "is_finalized", "competition",
    "home_score", "away_score", "combined", "max_combined",
]


def _name(teams: dict | None, participant, source: str = "") -> str:
    if participant is None:
        return source or "?"
    if teams is None:
        return f"Pos {participant}"
    return str(teams.get(participant, participant))


def format_plan(plan: Plan, teams: dict | None = None,
                title: str = "MATCH PLAN") -> str:
    """Format a plan as human-readable text, organized by week."""
    # Unfinalized plans hold standings positions, not team ids
    teams = (teams or {}) if plan.finalized else None
    lines = []
    lines.append("=" * 80)
    lines.append(title)
    lines.append("=" * 80)

    # Group by week
    by_week: dict[int, list[PlanEntry]] = {}
    for e in plan.chronological():
        by_week.setdefault(e.week_index, []).append(e)

    for week_index in sorted(by_week.keys()):
        week_entries = by_week[week_index]
        lines.append(f"\n--- WEEK {week_index + 1} ---")

        # Group by date within week
        by_date: dict[date, list[PlanEntry]] = {}
        for e in week_entries:
            by_date.setdefault(e.match_date, []).append(e)

        for d in sorted(by_date.keys()):
            lines.append(f"\n  {d.strftime('%A')} {d.strftime('%d/%m/%Y')}")
            for e in by_date[d]:
                home = _name(teams, e.home, e.fixture.home_from)
                away = _name(teams, e.away, e.fixture.away_from)
                score = ""
                if e.details is not None:
                    score = f"  [{e.details.combined}/{e.details.max_combined}]"
                lines.append(
                    f"    {e.code:<8} {e.start_time.strftime('%H:%M')}  "
                    f"{home:<20} vs {away:<20} @ {e.venue}{score}"
                )

    if plan.byes:
        lines.append(f"\n{'=' * 80}")
        lines.append("BYES")
        lines.append("=" * 80)
        for md in sorted(plan.byes):
            idle = ", ".join(_name(teams, p) for p in plan.byes[md])
            lines.append(f"  Matchday {md:>2}: {idle}")

    if plan.details_available():
        lines.append(f"\n{'=' * 80}")
        lines.append("PREFERENCE SCORES")
        lines.append("=" * 80)
        lines.append(f"  Total: {plan.total_combined_score}/{plan.max_total_score()}")
        for team_id in sorted(plan.team_totals):
            lines.append(
                f"  {_name(teams, team_id):<20} {plan.team_totals[team_id]:>4}"
            )

    if not plan.finalized:
        lines.append("\nNot finalized: participants are standings positions.")

    return "\n".join(lines)


def format_preview_csv(plan: Plan, competition: str = "") -> str:
    """Preview rows as CSV: the committed columns plus the score breakdown."""
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=PREVIEW_FIELDS)
    writer.writeheader()
    for row in plan.preview_rows(competition):
        details = row.pop("details") or {}
        row["home_score"] = details.get("homeScore", "")
        row["away_score"] = details.get("awayScore", "")
        row["combined"] = details.get("combined", "")
        row["max_combined"] = details.get("maxCombined", "")
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return output.getvalue()


def format_preview_json(plan: Plan, competition: str = "") -> str:
    """Preview rows as JSON, score breakdown nested under "details"."""
    return json.dumps(plan.preview_rows(competition), indent=2)


def write_plan(plan: Plan, teams: dict | None = None,
               output_prefix: str = "output", competition: str = "",
               title: str = "MATCH PLAN"):
    """Write the preview files into {output_prefix}/ directory."""
    out_dir = Path(output_prefix)
    out_dir.mkdir(parents=True, exist_ok=True)

    # Human-readable plan
    plan_path = out_dir / "plan.txt"
    plan_path.write_text(format_plan(plan, teams, title=title))
    print(f"Written: {plan_path}")

    # Preview rows
    csv_path = out_dir / "preview.csv"
    csv_path.write_text(format_preview_csv(plan, competition))
    print(f"Written: {csv_path}")

    json_path = out_dir / "preview.json"
    json_path.write_text(format_preview_json(plan, competition))
    print(f"Written: {json_path}")
