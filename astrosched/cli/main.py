import argparse
import sys

from astrosched import __version__
from astrosched.cli.commands import run_evaluate, run_night


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to config TOML")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")
    parser.add_argument(
        "--log-level", choices=["debug", "info", "warn", "error"], help="Logging level"
    )
    parser.add_argument("--lat", dest="latitude_deg", type=float, help="Site latitude (deg)")
    parser.add_argument("--lon", dest="longitude_deg", type=float, help="Site longitude (deg)")
    parser.add_argument("--tz", dest="timezone", help="Site time zone (IANA name)")
    parser.add_argument("--at", help="ISO time to evaluate; naive values are site local time")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="astrosched")
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    evaluate = subparsers.add_parser("evaluate", help="Evaluate one job's start, end and score")
    _add_common(evaluate)
    evaluate.add_argument("--name", default="job", help="Job name")
    evaluate.add_argument("--ra", dest="ra_hours", type=float, required=True, help="J2000 RA (hours)")
    evaluate.add_argument("--dec", dest="dec_deg", type=float, required=True, help="J2000 Dec (deg)")
    evaluate.add_argument("--min-alt", dest="min_altitude", type=float, help="Minimum altitude (deg)")
    evaluate.add_argument(
        "--min-moon-sep", dest="min_moon_separation", type=float, help="Minimum Moon separation (deg)"
    )
    evaluate.add_argument("--twilight", action="store_true", help="Only run during astronomical night")
    evaluate.add_argument("--horizon", action="store_true", help="Enforce the artificial horizon")

    night = subparsers.add_parser("night", help="Show next dawn/dusk and night state")
    _add_common(night)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"astrosched {__version__}")
        return 0

    if args.command == "evaluate":
        return run_evaluate(args)

    if args.command == "night":
        return run_night(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
