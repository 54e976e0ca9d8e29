"""
CLI utilities for business_kb_publisher.

This package provides shared functionality for scripts:
- Logging setup
- Argument parsing
- Input loading and pipeline wiring
- Command entry points
"""

from business_kb_publisher.cli.args import add_execute_argument, add_publish_arguments
from business_kb_publisher.cli.commands import (
    run_publish_business,
    run_publish_businesses,
    run_qid_cache,
)
from business_kb_publisher.cli.logging import (
    print_dry_run_header,
    print_execute_header,
    setup_logging,
)
from business_kb_publisher.cli.pipeline import (
    InputError,
    build_orchestrator,
    iter_jsonl,
    load_record,
    parse_record,
)

__all__ = [
    # Logging
    "setup_logging",
    "print_dry_run_header",
    "print_execute_header",
    # Arguments
    "add_execute_argument",
    "add_publish_arguments",
    # Pipeline
    "InputError",
    "build_orchestrator",
    "iter_jsonl",
    "load_record",
    "parse_record",
    # Commands
    "run_publish_business",
    "run_publish_businesses",
    "run_qid_cache",
]
