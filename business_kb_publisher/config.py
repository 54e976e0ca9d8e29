"""
Configuration management for business_kb_publisher.

Uses pydantic-settings for type-safe configuration with automatic
environment variable loading and validation.

Safety-critical defaults: production publishing is disallowed, entity
validation is enabled, and dry-run is off.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated at startup. Credentials are optional here and
    checked lazily by get_bot_credentials() so dry runs work without them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
        populate_by_name=True,  # Settings(allow_production=True) in code and tests
    )

    # Remote knowledge-base (MediaWiki Action API) endpoints
    sandbox_api_url: str = Field(
        default="https://test.wikidata.org/w/api.php",
        description="Action API endpoint of the sandbox deployment",
    )
    production_api_url: str = Field(
        default="https://www.wikidata.org/w/api.php",
        description="Action API endpoint of the production deployment",
    )
    sparql_endpoint: str = Field(
        default="https://query.wikidata.org/sparql",
        description="Structured-query (SPARQL) endpoint for identifier lookups",
    )

    # Bot credentials (Special:BotPasswords)
    bot_username: str | None = Field(
        default=None,
        validation_alias="WIKIBASE_BOT_USERNAME",
        description="Bot username, e.g. 'MyUser@MyBot'",
    )
    bot_password: str | None = Field(
        default=None,
        validation_alias="WIKIBASE_BOT_PASSWORD",
        description="Bot password generated at Special:BotPasswords",
    )

    # Publishing behaviour
    default_target: str = Field(
        default="sandbox",
        validation_alias="PUBLISH_TARGET",
        description="Target used when the caller does not specify one",
    )
    allow_production: bool = Field(
        default=False,
        validation_alias="ALLOW_PRODUCTION_PUBLISH",
        description="Production writes are downgraded to sandbox unless this is set",
    )
    validate_entities: bool = Field(
        default=True,
        description="Validate entity structure before any network call",
    )
    dry_run: bool = Field(
        default=False,
        validation_alias="PUBLISH_DRY_RUN",
        description="Validate only; never touch the network",
    )
    require_notability: bool = Field(
        default=True,
        description="Orchestrator blocks publishing when the notability verdict fails",
    )
    use_bot_flag: bool = Field(
        default=False,
        description="Send bot=1 on writes (account must have the bot right)",
    )
    sandbox_unique_labels: bool = Field(
        default=False,
        description="Suffix labels on sandbox writes to avoid label collisions",
    )
    verify_property_types: bool = Field(
        default=True,
        description=(
            "Check payload value types against the target's property datatypes before "
            "writing; sandbox drops mismatches, production fails validation"
        ),
    )

    # Identifier resolver
    qid_cache_stale_days: int = Field(
        default=30,
        ge=1,
        description="Cache entries older than this are revalidated on next hit",
    )
    cache_dir: Path = Field(
        default=Path("data/cache"),
        description="Directory for the diskcache identifier cache",
    )

    # HTTP behaviour
    request_timeout: float = Field(default=30.0, gt=0)
    sparql_timeout: float = Field(default=10.0, gt=0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)
    user_agent: str = Field(
        default="business-kb-publisher/0.1 (https://github.com/business-kb-publisher)",
    )

    @field_validator("bot_username", "bot_password", mode="before")
    @classmethod
    def empty_string_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional fields."""
        if isinstance(v, str):
            v = v.strip()
            return v if v else None
        return v

    @field_validator("default_target", mode="before")
    @classmethod
    def normalize_target(cls, v: str) -> str:
        """Lower-case and strip the default target name."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def get_bot_credentials(settings: Settings | None = None) -> tuple[str, str]:
    """Get bot username and password, raising if either is missing."""
    settings = settings or get_settings()
    if not settings.bot_username or not settings.bot_password:
        raise ValueError(
            "WIKIBASE_BOT_USERNAME and WIKIBASE_BOT_PASSWORD not set in .env file "
            "(create a bot password at Special:BotPasswords)"
        )
    return settings.bot_username, settings.bot_password


def get_cache_dir() -> Path:
    """Get identifier cache directory from settings."""
    return get_settings().cache_dir
