"""
Command line for the Four Pillars engine.

Usage:
    fourpillars pillars "1997-01-21 16:30"
    fourpillars chart "1997-01-21 16:30" --gender male [--cycles 8] [--save NAME]
    fourpillars luck "1997-01-21 16:30" --gender female [--cycles 8]
    fourpillars terms 1997 [--jie-only]
    fourpillars export-terms 1990 2030 solar_terms.json
"""

import argparse
import json
import logging
import sys

from fourpillars import config
from fourpillars.astro_calendar import default_solar_terms, export_solar_terms
from fourpillars.bazi import four_pillar_labels
from fourpillars.chart import compute_and_save_chart, compute_chart
from fourpillars.errors import FourPillarsError
from fourpillars.luck import luck_cycles, starting_offset


def build_parser():
    parser = argparse.ArgumentParser(prog="fourpillars", description="Four Pillars chart engine.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("pillars", help="Year, month, day and hour pillars")
    p.add_argument("birth")

    p = sub.add_parser("chart", help="Full chart")
    p.add_argument("birth")
    p.add_argument("--gender", required=True, choices=["male", "female"])
    p.add_argument("--cycles", type=int, default=None)
    p.add_argument("--save", metavar="NAME", default=None,
                   help="write the chart to the chart directory under NAME")

    p = sub.add_parser("luck", help="Luck pillars")
    p.add_argument("birth")
    p.add_argument("--gender", required=True, choices=["male", "female"])
    p.add_argument("--cycles", type=int, default=None)

    p = sub.add_parser("terms", help="Solar terms of a year")
    p.add_argument("year", type=int)
    p.add_argument("--jie-only", dest="jie_only", action="store_true")

    p = sub.add_parser("export-terms", help="Write solar terms for a range of years as JSON")
    p.add_argument("start", type=int)
    p.add_argument("end", type=int)
    p.add_argument("path")

    return parser


def run(args) -> object:
    if args.command == "pillars":
        return four_pillar_labels(args.birth)
    if args.command == "chart":
        if args.save:
            return compute_and_save_chart(args.save, args.birth, args.gender, args.cycles)
        return compute_chart(args.birth, args.gender, args.cycles)
    if args.command == "luck":
        return {
            "start": starting_offset(args.birth, args.gender).to_dict(),
            "cycles": [c.to_dict() for c in luck_cycles(args.birth, args.gender, args.cycles)],
        }
    if args.command == "terms":
        terms = default_solar_terms().terms(args.year, jie_only=args.jie_only)
        return {name: moment.strftime("%Y-%m-%d %H:%M:%S") for name, moment in terms.items()}
    if args.command == "export-terms":
        path = export_solar_terms(default_solar_terms(), range(args.start, args.end + 1), args.path)
        return {"path": str(path), "years": [args.start, args.end]}
    raise ValueError(f"Unknown command {args.command}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        result = run(args)
    except FourPillarsError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
