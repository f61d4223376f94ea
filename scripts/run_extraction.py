#!/usr/bin/env python
"""
Batch skip-trace report from a JSONL file of search results.

Each line holds one result object (``title``, ``snippet``, ``url``,
``source``, ``query``; optional ``confidence``). The subject comes from the
command line.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError
from tqdm import tqdm

from skiptrace.normalization.schema import SearchContext, SearchResult
from skiptrace.reports.generator import ReportGenerator
from skiptrace.settings import get_settings

LOGGER = logging.getLogger("skiptrace.scripts.run_extraction")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Return CLI arguments describing the input file and the search subject.

    Args:
        argv: Optional list of CLI arguments. When ``None``, defaults to ``sys.argv``.

    Returns:
        Parsed :class:`argparse.Namespace` containing CLI options.
    """

    parser = argparse.ArgumentParser(description="Build a skip-trace report from JSONL search results")
    parser.add_argument("input", type=Path, help="JSONL file with one search result per line")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/skiptrace_report.json"),
        help="Report destination (.json, or .md for Markdown)",
    )
    parser.add_argument("--name", required=True, help="Full name of the subject")
    parser.add_argument("--city", default=None, help="Last known city")
    parser.add_argument("--state", default=None, help="Last known state (code or name)")
    parser.add_argument("--phone", default=None, help="Known phone number")
    parser.add_argument("--email", default=None, help="Known email address")
    return parser.parse_args(argv)


def load_results(path: Path) -> List[SearchResult]:
    """Read search results from ``path``, skipping blank and malformed lines."""

    results: List[SearchResult] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                results.append(SearchResult.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as exc:
                LOGGER.warning("Skipping line %d of %s: %s", line_number, path, exc)
    return results


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if not args.input.exists():
        LOGGER.error("Input file not found: %s", args.input)
        return 1

    context = SearchContext(name=args.name, city=args.city, state=args.state, phone=args.phone, email=args.email)
    results = load_results(args.input)
    LOGGER.info("Loaded %d search results from %s", len(results), args.input)

    generator = ReportGenerator(settings=settings)
    report = generator.generate(
        context,
        results,
        progress=lambda items: tqdm(items, desc="Scoring results"),
    )
    path = generator.save(report, args.output)

    print(
        f"Report {report.report_id}: {report.metrics.total_results} results, "
        f"{len(report.entities)} entities, overall confidence {report.metrics.overall_confidence}"
    )
    print(f"Saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
