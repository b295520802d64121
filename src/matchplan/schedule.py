#!/usr/bin/env python3
"""Match Plan Builder.

Preview mode (default):
    matchplan {league,cup,playoffs} [config.yaml] [-o DIR] [--rounds N] [--seed N]
                                      [--samples N]

    Builds a plan from the YAML config and writes:
      {DIR}/plan.txt      - Human-readable week-by-week plan, byes, scores
      {DIR}/preview.csv   - Preview rows with the preference score breakdown
      {DIR}/preview.json  - Same rows as JSON
      {DIR}/report.txt    - Plan validation report

    Weeks that already hold matches of another competition in
    {DIR}/matches.csv are left out of the calendar. With --samples N the
    league and playoff groups are planned in N shuffled fixture orders and
    the best-scoring plan is kept.

Commit mode:
    matchplan league [config.yaml] --commit

    Same as preview, then appends the previewed rows unchanged to
    {DIR}/matches.csv. Match numbers already present there are rejected
    and nothing is written.

Examples:
    matchplan league                          # single round-robin, config.yaml
    matchplan league --rounds 2 -o najaar     # double round-robin
    matchplan league --samples 40 --seed 3    # best of 40 fixture orders
    matchplan cup --seed 7                    # reproducible cup draw
    matchplan playoffs custom.yaml --commit
"""

import argparse
import sys
from pathlib import Path

from matchplan.committer import CsvMatchStore, PlanCommitter
from matchplan.config import load_config
from matchplan.constraints import format_validation_report, validate_plan
from matchplan.output import write_plan
from matchplan.scheduler import COMPETITIONS, schedule


def main():
    parser = argparse.ArgumentParser(
        description="Match Plan Builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Output files:
  {dir}/plan.txt      Human-readable plan (week view, byes, scores)
  {dir}/preview.csv   Preview rows with score breakdown
  {dir}/preview.json  Preview rows as JSON
  {dir}/report.txt    Validation report
  {dir}/matches.csv   Committed rows (only with --commit)

Exit codes:
  0  Plan built (and committed, with --commit)
  1  Planning failed, plan invalid, or commit rejected
""",
    )
    parser.add_argument(
        "competition", choices=COMPETITIONS,
        help="Which competition to plan"
    )
    parser.add_argument(
        "config", nargs="?", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)"
    )
    parser.add_argument(
        "--rounds", type=int, default=None,
        help="League rounds: 1 = single, 2 = double round-robin "
             "(default: season.rounds from the config)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for the cup draw and for --samples "
             "(default: cup.seed from the config for the cup)"
    )
    parser.add_argument(
        "--samples", type=int, default=1,
        help="Plan the league or playoff groups in N shuffled fixture orders "
             "and keep the best-scoring plan (default: 1)"
    )
    parser.add_argument(
        "--output-prefix", "-o", default="output",
        help="Output directory for generated files (default: output/)"
    )
    parser.add_argument(
        "--commit", action="store_true",
        help="Append the previewed rows to {dir}/matches.csv"
    )
    args = parser.parse_args()

    config_path = args.config
    if not Path(config_path).exists():
        print(f"Error: config file {config_path} not found")
        sys.exit(1)

    print(f"Loading config from {config_path}...")
    config = load_config(config_path)

    matches_path = Path(args.output_prefix) / "matches.csv"
    store = CsvMatchStore(matches_path)

    print(f"Planning {args.competition}...")
    run = schedule(config, args.competition, rounds=args.rounds, seed=args.seed,
                   store=store, samples=args.samples)
    result = run.build()
    if not result["success"]:
        print(f"Error: {result['message']}")
        sys.exit(1)
    plan = result["plan"]

    # Validate
    print("\nValidating...")
    validation = validate_plan(
        plan, run.eligible_weeks, config["blackouts"],
        matches_per_week=config["season"]["matches_per_week"]
        if args.competition == "league" else None,
    )
    report = format_validation_report(validation)
    print(report)

    # Write outputs
    print("\nWriting output files...")
    season_name = config["season"].get("name", "")
    title = f"{season_name} {args.competition}".strip().upper()
    write_plan(plan, config["teams"], output_prefix=args.output_prefix,
               competition=args.competition, title=title)
    report_path = Path(args.output_prefix) / "report.txt"
    report_path.write_text(report)
    print(f"Written: {report_path}")

    if not validation["valid"]:
        print(f"\nPlan has {len(validation['errors'])} constraint violations.")
        run.discard()
        sys.exit(1)

    if not args.commit:
        print("\nPreview written. Run again with --commit to save the matches.")
        return

    committer = PlanCommitter(store, competition=args.competition)
    commit = run.commit(committer)
    if not commit["success"]:
        print(f"Error: {commit['message']}")
        sys.exit(1)
    print(f"Written: {matches_path}")
    print(f"\n{commit['message']}")


if __name__ == "__main__":
    main()
