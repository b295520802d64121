"""Plan validation.

Checks a Plan (freshly built, or re-read from committed rows) against the
calendar it was built for.
"""

from collections import defaultdict
from datetime import date

from matchplan.models import BlackoutPeriod, Plan
from matchplan.weeks import is_blacked_out, monday_of


def validate_plan(plan: Plan, eligible_weeks: list[date],
                  blackouts: list[BlackoutPeriod] = (),
                  matches_per_week: int | None = None) -> dict:
    """Validate a plan against the hard scheduling constraints.

    Returns dict with:
    - valid: bool (True if no hard constraint violations)
    - errors: list of hard constraint violations
    - warnings: list of soft constraint issues
    """
    errors = []
    warnings = []

    eligible = set(eligible_weeks)
    codes = defaultdict(int)
    per_week = defaultdict(int)
    team_weeks: dict[int, dict[date, int]] = defaultdict(lambda: defaultdict(int))

    for e in plan.entries:
        codes[e.code] += 1
        week = monday_of(e.match_date)
        per_week[week] += 1

        if week not in eligible:
            errors.append(
                f"{e.code}: {e.match_date} is not in an eligible week"
            )
        if is_blacked_out(e.match_date, blackouts):
            errors.append(f"{e.code}: {e.match_date} falls in a blackout period")

        for p in e.fixture.participants():
            team_weeks[p][week] += 1

        if e.fixture.home is not None and e.fixture.home == e.fixture.away:
            errors.append(f"{e.code}: {e.fixture.home} plays itself")
        if not e.venue:
            warnings.append(f"{e.code}: no venue")

    for code, count in codes.items():
        if count > 1:
            errors.append(f"Match number {code} used {count} times")

    for team, weeks in team_weeks.items():
        for week, count in weeks.items():
            if count > 1:
                errors.append(
                    f"{team} plays {count} matches in week of {week}"
                )

    if matches_per_week is not None:
        for week, count in sorted(per_week.items()):
            if count > matches_per_week:
                errors.append(
                    f"Week of {week}: {count} matches "
                    f"(capacity {matches_per_week})"
                )

    if plan.details_available():
        low = [e.code for e in plan.entries
               if e.details is not None and e.details.combined == 0]
        if low:
            warnings.append(
                f"{len(low)} matches match no preference of either team"
            )

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


def format_validation_report(result: dict) -> str:
    """Format validation results as text."""
    lines = []
    lines.append("=" * 60)
    lines.append("PLAN VALIDATION REPORT")
    lines.append("=" * 60)

    if result["valid"]:
        lines.append("\nRESULT: VALID (no hard constraint violations)")
    else:
        lines.append(f"\nRESULT: INVALID ({len(result['errors'])} violations)")

    if result["errors"]:
        lines.append(f"\n--- ERRORS ({len(result['errors'])}) ---")
        for e in result["errors"]:
            lines.append(f"  ERROR: {e}")

    if result["warnings"]:
        lines.append(f"\n--- WARNINGS ({len(result['warnings'])}) ---")
        for w in result["warnings"]:
            lines.append(f"  WARN: {w}")

    return "\n".join(lines)
