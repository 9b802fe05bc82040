import argparse
import dataclasses
import json
import logging

from pydantic import ValidationError

from .aggregator import Aggregator
from .api.schemas import FreeDataRequest
from .config import get_settings
from .exporters import FORMATS, safe_output_path, write_properties


def build_parser():
    parser = argparse.ArgumentParser(
        description="Aggregate free property and infrastructure data for a location",
    )
    parser.add_argument(
        "--location",
        required=True,
        help='Location to search, e.g. "Houston, TX" or "Calgary, AB"',
    )
    parser.add_argument(
        "--property-type",
        default=None,
        help="Property type hint passed to sources (e.g. industrial)",
    )
    parser.add_argument(
        "--source",
        default=None,
        help="Single national source to query (default: county records)",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=None,
        help="Search radius in miles for sources that support it",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help="Delay between sources in milliseconds",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-source request timeout in seconds",
    )
    parser.add_argument(
        "--max-sources",
        type=int,
        default=None,
        help="Maximum number of registry sources to query",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned sources without any network access",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit one JSON log line per source",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write found properties to a file (path)",
    )
    parser.add_argument(
        "--format",
        choices=list(FORMATS),
        default="json",
        help="Output format for --output",
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        request = FreeDataRequest(
            source=args.source,
            location=args.location,
            property_type=args.property_type,
            radius=args.radius,
        )
    except ValidationError as exc:
        parser.error(str(exc).splitlines()[0] if str(exc) else "invalid arguments")

    settings = get_settings()
    overrides = {}
    if args.delay_ms is not None:
        overrides["delay_ms"] = max(0, args.delay_ms)
    if args.timeout is not None:
        overrides["timeout_s"] = max(1.0, args.timeout)
    if args.max_sources is not None:
        overrides["max_sources"] = max(1, args.max_sources)
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    aggregator = Aggregator(settings)

    if args.dry_run:
        special, planned = aggregator.plan(request.location, request.source)
        names = ([special.name] if special else []) + [c.name for c in planned]
        print(f"Sources: {', '.join(names) if names else '(none)'}")
        for config in ([special] if special else []) + planned:
            print(f"{config.name}: {config.access_method} -> {config.url}")
            if args.log_json:
                print(
                    json.dumps(
                        {
                            "source": config.name,
                            "access_method": config.access_method,
                            "found": 0,
                            "status": "skipped",
                        }
                    )
                )
        summary = {
            "sources_attempted": 0,
            "succeeded": 0,
            "failed": 0,
            "total_found": 0,
        }
        print(json.dumps(summary))
        return

    report = aggregator.run(request)

    if args.output:
        output_path = safe_output_path(args.output)
        write_properties(report.properties, output_path, args.format)

    print(report.message)
    print(f"Found {report.total_found} properties:")
    for i, prop in enumerate(report.properties):
        print(f"{i+1}. [{prop.source}] {prop.address}, {prop.city}, {prop.state}")
    if args.log_json:
        for outcome in report.outcomes:
            print(json.dumps(outcome.to_dict()))
    summary = {
        "sources_attempted": report.sources_attempted,
        "succeeded": len(report.successful_sources),
        "failed": len(report.failed_sources),
        "total_found": report.total_found,
    }
    print(json.dumps(summary))


def _safe_main():
    try:
        main()
    except SystemExit:
        raise
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        raise SystemExit(1)


if __name__ == "__main__":
    _safe_main()
