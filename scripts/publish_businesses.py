#!/usr/bin/env python3
"""
Publish a batch of businesses from a JSONL file.

Each line is one record in the same format publish_business.py reads.
Businesses are published one at a time (never two publishes for the same
business in flight); the identifier cache is shared across the batch.

Results are written as JSONL (one PublishOutcome per input line) so the
caller can persist identifiers against its business records.

Usage:
    python scripts/publish_businesses.py businesses.jsonl                 # Dry-run
    python scripts/publish_businesses.py businesses.jsonl --execute       # Publish to sandbox
    python scripts/publish_businesses.py businesses.jsonl --execute --output results.jsonl
"""

import argparse
import json
import sys
import time
from dataclasses import asdict
from pathlib import Path

from tqdm import tqdm

from business_kb_publisher.cli import (
    InputError,
    add_execute_argument,
    add_publish_arguments,
    build_orchestrator,
    iter_jsonl,
    parse_record,
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)
from business_kb_publisher.config import get_settings
from business_kb_publisher.domain.models import ErrorKind
from business_kb_publisher.entity import EntityBuildError


def main():
    """Run the batch publish script."""
    parser = argparse.ArgumentParser(description="Publish businesses from a JSONL file")
    parser.add_argument("input", type=Path, help="JSONL file, one business record per line")
    add_execute_argument(parser)
    add_publish_arguments(parser)
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write one JSON result per input line to this file",
    )
    args = parser.parse_args()

    logger = setup_logging("publish_businesses", execute=args.execute, verbose=args.verbose)
    settings = get_settings()

    try:
        records = list(iter_jsonl(args.input))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read {args.input}: {e}")
        sys.exit(2)

    title = f"Publish {len(records)} businesses"
    if args.execute:
        print_execute_header(title, logger)
    else:
        print_dry_run_header(title, logger)

    orchestrator, resolver = build_orchestrator(
        settings, remote_lookup=not args.offline, logger=logger
    )
    publish = orchestrator.publish_or_update if args.update_on_conflict else orchestrator.publish

    counters = {"published": 0, "not_notable": 0, "failed": 0, "invalid": 0}
    results = []
    start_time = time.time()

    try:
        with tqdm(total=len(records), desc="Publishing", unit="business") as pbar:
            for line_number, record in records:
                try:
                    subject, crawl_data, references = parse_record(record)
                    report = publish(
                        subject,
                        crawl_data,
                        references,
                        target=args.target,
                        dry_run=not args.execute,
                        require_notability=False if args.skip_notability else None,
                    )
                except (InputError, EntityBuildError) as e:
                    logger.warning(f"Line {line_number}: {e}")
                    counters["invalid"] += 1
                    results.append({"line": line_number, "success": False, "message": str(e)})
                    pbar.update(1)
                    continue

                outcome = report.outcome
                if outcome.success:
                    counters["published"] += 1
                elif outcome.error and outcome.error.kind == ErrorKind.NOT_NOTABLE:
                    counters["not_notable"] += 1
                else:
                    counters["failed"] += 1
                    logger.warning(f"Line {line_number} ({subject.name}): {report.message}")

                results.append(
                    {
                        "line": line_number,
                        "name": subject.name,
                        "message": report.message,
                        "quality_score": report.entity.quality_score if report.entity else None,
                        **asdict(outcome),
                    }
                )
                pbar.set_postfix(ok=counters["published"], failed=counters["failed"])
                pbar.update(1)
    finally:
        resolver.close()

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            for result in results:
                f.write(json.dumps(result, default=str) + "\n")
        logger.info(f"Results written to {args.output}")

    elapsed = time.time() - start_time
    logger.info("=" * 70)
    logger.info("Batch Complete")
    logger.info("=" * 70)
    logger.info(f"  Total: {len(records)}")
    logger.info(f"  {'Validated' if not args.execute else 'Published'}: {counters['published']}")
    logger.info(f"  Not notable: {counters['not_notable']}")
    logger.info(f"  Failed: {counters['failed']}")
    logger.info(f"  Invalid input: {counters['invalid']}")
    logger.info(f"  Time: {elapsed:.1f}s")
    if not args.execute:
        logger.info("")
        logger.info("To publish, run with --execute flag")
    sys.exit(0 if counters["failed"] == 0 and counters["invalid"] == 0 else 1)


if __name__ == "__main__":
    main()
