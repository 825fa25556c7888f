#!/usr/bin/env python3
"""
Submit a gazette PDF and a registry spreadsheet to the matching service.

The script uploads both files, logs the returned summary, optionally narrows
the results with a search string, and writes the filtered set to a
timestamped CSV inside the output directory.

Usage:
    python scripts/match_documents.py --pdf gazette.pdf --excel registry.xlsx --mode fuzzy --threshold 0.9
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from gazette_matcher.client import MatcherClient
from gazette_matcher.config import get_settings
from gazette_matcher.errors import MatcherError
from gazette_matcher.records.models import Document, MatchMode, SubmissionParameters
from gazette_matcher.session import MatcherSession


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Match gazette names against a registry spreadsheet.")
    parser.add_argument("--pdf", type=Path, required=True, help="Scanned gazette PDF.")
    parser.add_argument("--excel", type=Path, required=True, help="Registry spreadsheet (.xlsx/.xls).")
    parser.add_argument("--mode", default=MatchMode.TOKENS.value, choices=[m.value for m in MatchMode])
    parser.add_argument("--threshold", type=float, default=0.85, help="Fuzzy similarity cutoff (0.50-0.99).")
    parser.add_argument("--search", default="", help="Only export records matching this text.")
    parser.add_argument("--output-dir", type=Path, default=Path("exports"), help="Where the CSV is written.")
    parser.add_argument("--api-base", default=None, help="Override MATCHER_API_BASE.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.api_base:
        settings = settings.model_copy(update={"api_base_url": args.api_base})
    session = MatcherSession(settings, MatcherClient(settings))
    try:
        params = SubmissionParameters(MatchMode(args.mode), args.threshold)
        result = await session.submission.submit(
            Document.from_path(args.pdf),
            Document.from_path(args.excel),
            params,
        )
    except MatcherError as exc:
        logging.error("Matching failed: %s", exc.message)
        return 1
    finally:
        await session.close()

    summary = result.summary
    logging.info("Mode: %s  Threshold: %s", summary.mode, summary.threshold)
    logging.info("Gazette: %s  Excel: %s", summary.total_gazette, summary.total_excel)
    logging.info("Matched: %s  Inserted: %s", summary.matched_count, summary.inserted_count)

    if session.store.is_empty:
        logging.warning("No matches returned; nothing to export.")
        return 0

    session.store.set_search(args.search)
    view = session.store.view()
    for group in view.groups:
        logging.info("  %s (%d)", group.key, group.size)

    artifact = session.exporter.export_current_view()
    path = artifact.write_to(args.output_dir)
    logging.info("Wrote %d records to %s", artifact.row_count, path)
    return 0


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
