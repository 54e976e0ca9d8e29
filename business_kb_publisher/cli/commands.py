"""
CLI command entry points for business_kb_publisher.

These functions are registered as console scripts in pyproject.toml.
The publish commands delegate to the corresponding script in scripts/.
"""

import subprocess
import sys
from datetime import datetime
from pathlib import Path


def _run_script(script_name: str):
    """
    Helper to run a script with arguments.

    Args:
        script_name: Name of script file (without .py extension)
    """
    script = Path(__file__).parent.parent.parent / "scripts" / f"{script_name}.py"
    # Safe: sys.argv[1:] passed as list (not shell=True), arguments validated by argparse
    result = subprocess.run([sys.executable, str(script)] + sys.argv[1:], check=False)
    sys.exit(result.returncode)


def run_publish_business():
    """Entry point for publish-business command."""
    _run_script("publish_business")


def run_publish_businesses():
    """Entry point for publish-businesses command."""
    _run_script("publish_businesses")


def _format_time(epoch: float) -> str:
    if not epoch:
        return "never"
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M")


def run_qid_cache(argv: list[str] | None = None):
    """Entry point for qid-cache command."""
    import argparse

    from business_kb_publisher.cache import get_cache
    from business_kb_publisher.resolution.cache import IdentifierCache
    from business_kb_publisher.resolution.resolver import IdentifierResolver

    parser = argparse.ArgumentParser(description="Manage the identifier (QID) cache")
    parser.add_argument("command", choices=["stats", "list", "clear", "revalidate"])
    parser.add_argument("--type", "-t", help="Filter list by entity type (city, industry, ...)")
    parser.add_argument("--limit", type=int, default=20, help="Limit for list/revalidate")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    args = parser.parse_args(argv)

    cache = get_cache()
    qid_cache = IdentifierCache(cache)

    if args.command == "stats":
        entries = list(qid_cache.entries())
        stats = cache.stats()
        print(f"Cache: {stats['cache_dir']}")
        print(f"  Identifier entries: {len(entries)}")
        print(f"  Size: {stats['size_mb']} MB")
        by_type: dict[str, int] = {}
        by_source: dict[str, int] = {}
        for entry in entries:
            by_type[entry.entity_type.value] = by_type.get(entry.entity_type.value, 0) + 1
            by_source[entry.source.value] = by_source.get(entry.source.value, 0) + 1
        print("  By type:")
        for name, count in sorted(by_type.items()):
            print(f"    {name}: {count}")
        print("  By source:")
        for name, count in sorted(by_source.items()):
            print(f"    {name}: {count}")

    elif args.command == "list":
        entries = sorted(qid_cache.entries(), key=lambda e: -e.query_count)
        if args.type:
            entries = [e for e in entries if e.entity_type.value == args.type]
        print(f"Entries ({args.type or 'all'}, limit {args.limit}):")
        for entry in entries[: args.limit]:
            print(
                f"  {entry.entity_type.value:<10} {entry.search_key:<30} {entry.identifier:<10} "
                f"{entry.source.value:<13} hits={entry.query_count} "
                f"validated={_format_time(entry.last_validated_at)}"
            )

    elif args.command == "clear":
        if not args.yes:
            confirm = input("Clear all identifier cache entries? [y/N] ")
            if confirm.lower() != "y":
                print("Aborted")
                return
        print(f"Cleared {qid_cache.clear()} entries")

    elif args.command == "revalidate":
        resolver = IdentifierResolver(cache=qid_cache, background_revalidation=False)
        try:
            checked, changed = resolver.revalidate_stale(limit=args.limit)
        finally:
            resolver.close()
        print(f"Revalidated {checked} stale entries ({changed} changed)")
