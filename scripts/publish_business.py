#!/usr/bin/env python3
"""
Publish one business to the knowledge base.

This script:
1. Evaluates notability from the supplied references
2. Builds a structured entity (resolving city/industry/legal form identifiers)
3. Publishes it through the Action API (create, or update with --identifier)

Without --execute nothing is written: the entity is built, validated and
printed, and the publish client runs in dry-run mode.

Usage:
    python scripts/publish_business.py business.json                  # Dry-run
    python scripts/publish_business.py business.json --execute        # Publish to sandbox
    python scripts/publish_business.py business.json --execute --identifier Q123  # Update
"""

import argparse
import json
import sys
from pathlib import Path

from business_kb_publisher.cli import (
    InputError,
    add_execute_argument,
    add_publish_arguments,
    build_orchestrator,
    load_record,
    parse_record,
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)
from business_kb_publisher.config import get_settings
from business_kb_publisher.entity import EntityBuildError
from business_kb_publisher.entity.properties import property_label


def main():
    """Run the single-business publish script."""
    parser = argparse.ArgumentParser(description="Publish one business to the knowledge base")
    parser.add_argument("input", type=Path, help="JSON file with business/crawl/references")
    add_execute_argument(parser)
    add_publish_arguments(parser)
    parser.add_argument(
        "--identifier",
        help="Existing identifier to update instead of creating a new entity",
    )
    parser.add_argument(
        "--show-json",
        action="store_true",
        help="Print the Wikibase JSON payload",
    )
    args = parser.parse_args()

    logger = setup_logging("publish_business", execute=args.execute, verbose=args.verbose)
    settings = get_settings()

    try:
        subject, crawl_data, references = parse_record(load_record(args.input))
    except (OSError, json.JSONDecodeError, InputError) as e:
        logger.error(f"Could not read {args.input}: {e}")
        sys.exit(2)

    if args.execute:
        print_execute_header(f"Publish: {subject.name}", logger)
    else:
        print_dry_run_header(f"Publish: {subject.name}", logger)

    orchestrator, resolver = build_orchestrator(
        settings, remote_lookup=not args.offline, logger=logger
    )
    publish = orchestrator.publish_or_update if args.update_on_conflict else orchestrator.publish
    try:
        report = publish(
            subject,
            crawl_data,
            references,
            target=args.target,
            dry_run=not args.execute,
            require_notability=False if args.skip_notability else None,
            identifier=args.identifier,
        )
    except EntityBuildError as e:
        logger.error(str(e))
        sys.exit(2)
    finally:
        resolver.close()

    verdict = report.verdict
    logger.info("")
    status = "notable" if verdict.is_notable else "not notable"
    logger.info(
        f"Notability: {status} (confidence {verdict.confidence:.2f}, "
        f"{verdict.serious_reference_count} serious references)"
    )
    for reason in verdict.reasons:
        logger.info(f"  - {reason}")

    entity = report.entity
    if entity is not None:
        logger.info("")
        logger.info(f"Entity: {entity.label()!r} - {entity.descriptions['en'].value}")
        logger.info(f"  Quality score: {entity.quality_score}/100")
        logger.info(f"  Claims: {entity.claim_count}, references: {entity.reference_count}")
        for property_id, claims in entity.claims.items():
            logger.info(f"    {property_id} ({property_label(property_id)}): {len(claims)}")
        if args.show_json:
            print(json.dumps(entity.to_wikibase_json(), indent=2, ensure_ascii=False))

    logger.info("")
    logger.info(report.message)
    if not args.execute:
        logger.info("")
        logger.info("To publish, run with --execute flag")
    sys.exit(0 if report.success else 1)


if __name__ == "__main__":
    main()
