"""
Argument parsing utilities for business_kb_publisher scripts.

Provides standard argument patterns used across scripts.
"""

from business_kb_publisher.domain.models import PublishTarget


def add_execute_argument(parser):
    """
    Add standard --execute argument to an ArgumentParser.

    Without --execute, scripts build and validate entities but never write.
    """
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually publish (default is dry-run: validate only, no network writes)",
    )


def add_publish_arguments(parser):
    """Add target and notability options shared by the publish scripts."""
    parser.add_argument(
        "--target",
        choices=[target.value for target in PublishTarget],
        default=None,
        help="Deployment to write to (default: PUBLISH_TARGET, normally sandbox). "
        "Production also needs ALLOW_PRODUCTION_PUBLISH=true.",
    )
    parser.add_argument(
        "--skip-notability",
        action="store_true",
        help="Publish even if the notability check fails",
    )
    parser.add_argument(
        "--update-on-conflict",
        action="store_true",
        help="If the business already exists remotely, update that entity",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Resolve identifiers from static tables and cache only (no SPARQL)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
