"""
Erranza CLI entrypoint.

Intended for local debugging of the matching core without the API.
It delegates all matching logic to `erranza.recommender.match.match`.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from erranza.catalog.respondents import RespondentStore
from erranza.config.settings import get_settings
from erranza.core.env import resolve_project_path
from erranza.core.logging import configure_logging
from erranza.domain.models import GeoConstraint, MatchRequest
from erranza.features.psychometrics import calculate_profile
from erranza.features.traits import calculate_all_traits, parse_response
from erranza.quality.report import build_quality_report
from erranza.recommender.match import match
from erranza.scoring.explain import one_line_summary, traits_summary


def _read_responses(path: str) -> dict[str, Any]:
    payload = json.loads(resolve_project_path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Responses file '{path}' must contain a JSON object")
    return payload


def _geo_from_args(args: argparse.Namespace) -> GeoConstraint:
    if args.country:
        return GeoConstraint(kind="country", value=args.country)
    if args.region:
        return GeoConstraint(kind="region", value=args.region)
    if args.max_flight_hours is not None:
        return GeoConstraint(kind="flight_radius", value=str(args.max_flight_hours))
    return GeoConstraint()


def _cmd_traits(args: argparse.Namespace) -> int:
    parsed = parse_response(_read_responses(args.responses))
    traits = calculate_all_traits(parsed)
    profile = calculate_profile(parsed)
    if args.json:
        payload = {"traits": traits.model_dump(mode="json"), "profile": profile.model_dump(mode="json")}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    print(traits_summary(traits))
    print(f"tribe={profile.tribe} ({profile.tribe_confidence})")
    return 0


def _cmd_match(args: argparse.Namespace) -> int:
    """Handle the `match` subcommand."""
    settings = get_settings()

    respondents = None
    raw = None
    if args.responses:
        raw = _read_responses(args.responses)
    elif args.respondents:
        respondents = RespondentStore.from_file(Path(args.respondents))

    request = MatchRequest(
        raw_responses=raw,
        respondent_id=args.respondent_id,
        geo=_geo_from_args(args),
        max_results=args.max_results,
        include_narratives=not args.no_narratives,
        include_profile_narrative=args.profile_narrative,
    )
    try:
        result = match(request, settings=settings, respondents=respondents)
    except KeyError as e:
        print(f"error: {e.args[0] if e.args else e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"Generated at: {result.generated_at.isoformat()}")
    print(f"Traits: {traits_summary(result.traits)}")
    if result.profile_narrative:
        print(f"{result.profile_narrative.headline}: {result.profile_narrative.tagline}")
    if not result.results:
        print("No destinations available.")
        return 0
    print("Top matches:")
    for item in result.results:
        dest = item.destination
        print(f"{item.match.rank:>2}. {dest.name} ({dest.country})  {one_line_summary(item.match)}")
        if item.narrative:
            print(f"    {item.narrative.affinity_label} | {item.narrative.best_for}")
            print(f"    {item.narrative.why_it_fits}")
            print(f"    Note: {item.narrative.tension.text}")
    return 0


def _cmd_quality_report(_: argparse.Namespace) -> int:
    report = build_quality_report(get_settings())
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Erranza CLI."""
    parser = argparse.ArgumentParser(prog="erranza")
    sub = parser.add_subparsers(dest="command", required=True)

    tr = sub.add_parser("traits", help="Extract the trait vector from a raw responses JSON file.")
    tr.add_argument("--responses", required=True, help="Path to a JSON object of question id -> answer")
    tr.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    tr.set_defaults(func=_cmd_traits)

    m = sub.add_parser("match", help="Rank catalog destinations for one respondent.")
    source = m.add_mutually_exclusive_group(required=True)
    source.add_argument("--responses", help="Path to a JSON object of question id -> answer")
    source.add_argument("--respondents", help="Respondent export file (use with --respondent-id)")
    m.add_argument("--respondent-id", default=None)
    geo = m.add_mutually_exclusive_group()
    geo.add_argument("--country", default=None, help="Case-insensitive country substring")
    geo.add_argument("--region", default=None, help="Exact region name")
    geo.add_argument("--max-flight-hours", type=float, default=None)
    m.add_argument("--max-results", type=int, default=None)
    m.add_argument("--no-narratives", action="store_true", help="Skip per-match narrative strings")
    m.add_argument("--profile-narrative", action="store_true", help="Include the traveler profile narrative")
    m.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    m.set_defaults(func=_cmd_match)

    q = sub.add_parser("quality-report", help="Offline catalog quality report.")
    q.set_defaults(func=_cmd_quality_report)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m erranza.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "match" and args.respondents and not args.respondent_id:
        parser.error("--respondents requires --respondent-id")
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
