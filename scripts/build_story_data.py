#!/usr/bin/env python3
"""Build chart-ready data files for the EVI change story.

Reads the source CSV tables, runs the grid diff or the regional trend,
and writes the derived records the story pages draw.

Usage:
    python build_story_data.py diff --pixels evi_pixels.csv \
        --start 2004 --end 2024 --output diff.csv
    python build_story_data.py trend --series evi_by_state.csv \
        --region CA --window 2005 2015 --output trend.json

Example:
    python build_story_data.py trend --series drought.csv \
        --value-column drought_index --output drought_us.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Check imports before running
try:
    import evistory as es
    from evistory.config import resolve_config_path
except ImportError:
    print("Error: evistory not installed. Run: pip install -e .")
    sys.exit(1)


def run_diff(args: argparse.Namespace, config: es.Config) -> None:
    """Write the classified per-pixel diff grid as CSV."""
    print(f"Loading pixels from {args.pixels}...")
    pixels = es.read_pixel_csv(args.pixels, strict=not args.lenient)

    result = es.vegetation_change(
        pixels, args.start, args.end, config=config, source=str(args.pixels)
    )
    print(result)

    df = result.to_dataframe()
    df.to_csv(args.output, index=False)
    print(f"  Wrote {len(df)} pixels to {args.output}")

    if args.legend:
        legend = [
            {"band": e.band, "label": e.label, "color": e.color}
            for e in result.legend
        ]
        Path(args.legend).write_text(json.dumps(legend, indent=2), encoding="utf-8")
        print(f"  Wrote legend to {args.legend}")


def run_trend(args: argparse.Namespace, config: es.Config) -> None:
    """Write the yearly mean series (visible slice) as JSON."""
    print(f"Loading series from {args.series}...")
    records = es.read_series_csv(
        args.series,
        value_column=args.value_column,
        region_column=args.region_column,
        strict=not args.lenient,
    )

    window = tuple(args.window) if args.window else None
    result = es.regional_trend(
        records, args.region, window=window, config=config, source=str(args.series)
    )
    print(result)

    payload = {
        "region": result.region,
        "window": list(result.window) if result.window else None,
        "extent": list(result.extent) if result.extent else None,
        "points": [
            {"year": p.year, "value": p.mean_value} for p in result.visible
        ],
    }
    Path(args.output).write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"  Wrote {len(result.visible)} points to {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build chart-ready data for the EVI change story"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file (default: $EVISTORY_CONFIG or ~/.evistory/config.json)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Drop invalid rows instead of failing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    diff = sub.add_parser("diff", help="Per-pixel EVI change grid")
    diff.add_argument("--pixels", type=Path, required=True, help="Pixel CSV (x,y,year,value)")
    diff.add_argument("--start", type=int, required=True, help="Baseline year")
    diff.add_argument("--end", type=int, required=True, help="Comparison year")
    diff.add_argument(
        "--preset",
        choices=["absolute", "percent"],
        default=None,
        help="Threshold preset (overrides config)",
    )
    diff.add_argument("--output", type=Path, required=True, help="Output CSV path")
    diff.add_argument("--legend", type=Path, default=None, help="Optional legend JSON path")

    trend = sub.add_parser("trend", help="Yearly mean series for a region")
    trend.add_argument("--series", type=Path, required=True, help="Series CSV")
    trend.add_argument("--region", default=None, help="Region (default: all)")
    trend.add_argument(
        "--window",
        type=int,
        nargs=2,
        metavar=("MIN_YEAR", "MAX_YEAR"),
        default=None,
        help="Visible year window",
    )
    trend.add_argument("--value-column", default="value", help="Value column name")
    trend.add_argument("--region-column", default="region", help="Region column name")
    trend.add_argument("--output", type=Path, required=True, help="Output JSON path")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        # An explicit --config must exist; the fallbacks are optional.
        config_path = args.config or resolve_config_path()
        config = es.load_config(config_path) if config_path else es.get_default_config()
        if getattr(args, "preset", None):
            config = config.model_copy(
                update={"threshold_preset": args.preset, "thresholds": None}
            )

        if args.command == "diff":
            run_diff(args, config)
        else:
            run_trend(args, config)
    except es.EviStoryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
