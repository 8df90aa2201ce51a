"""Configuration loading and validation for the blog builder."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

import yaml

from .cleaner import ALLOWED_ATTRIBUTES, ALLOWED_TAGS, DEFAULT_ORIGIN
from .logger import (
    DEFAULT_BACKUP_COUNT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_BYTES,
    LOG_FORMATS,
    get_logger,
)

logger = get_logger(__name__)

ENV_PREFIX = "BLOG_"


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class SiteSettings:
    """Identity of the rendered site."""

    name: str = "Campusify Blog"
    url: str = "https://shorya-campusify-blog.vercel.app"
    locale: str = "en_US"
    copyright: str = "© Campusify. All Rights Reserved."
    cms_link_text: str = "Visit Campusify"


@dataclass
class CMSSettings:
    """Where pages come from and how long fetched responses stay fresh."""

    origin: str = DEFAULT_ORIGIN
    pages_path: str = "/wp-json/wp/v2/pages"
    revalidate: int = 3600


@dataclass
class HTTPSettings:
    timeout: int = 30
    retry_count: int = 3
    retry_delay: float = 1.0
    user_agent: str = "CampusifyBlog/1.0"
    cache_dir: str | None = ".cache/http"


@dataclass
class CleanerSettings:
    """Allow-lists for the content cleaner and excerpt lengths."""

    allowed_tags: list[str] = field(default_factory=lambda: sorted(ALLOWED_TAGS))
    allowed_attributes: list[str] = field(default_factory=lambda: sorted(ALLOWED_ATTRIBUTES))
    list_excerpt_length: int = 150
    meta_excerpt_length: int = 160


@dataclass
class LoggingSettings:
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = None
    log_format: str = "text"
    max_file_size: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUP_COUNT


@dataclass
class BlogConfig:
    """Complete builder configuration."""

    site: SiteSettings = field(default_factory=SiteSettings)
    cms: CMSSettings = field(default_factory=CMSSettings)
    http: HTTPSettings = field(default_factory=HTTPSettings)
    cleaner: CleanerSettings = field(default_factory=CleanerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    output_dir: str = "public"

    def __post_init__(self):
        """Apply environment variable overrides."""
        origin_override = os.environ.get(f"{ENV_PREFIX}CMS_ORIGIN")
        if origin_override:
            logger.debug("Overriding CMS origin from environment")
            self.cms.origin = origin_override

        site_url_override = os.environ.get(f"{ENV_PREFIX}SITE_URL")
        if site_url_override:
            logger.debug("Overriding site URL from environment")
            self.site.url = site_url_override

        revalidate_override = os.environ.get(f"{ENV_PREFIX}REVALIDATE")
        if revalidate_override:
            try:
                self.cms.revalidate = int(revalidate_override)
            except ValueError as e:
                raise ConfigurationError(
                    f"{ENV_PREFIX}REVALIDATE must be an integer, got {revalidate_override!r}"
                ) from e
            logger.debug(f"Overriding revalidate interval: {self.cms.revalidate}s")

        output_override = os.environ.get(f"{ENV_PREFIX}OUTPUT_DIR")
        if output_override:
            logger.debug("Overriding output directory from environment")
            self.output_dir = output_override

        validate_config(self)


def _require_http_url(value: str, field_name: str) -> None:
    parsed = urlparse(value or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"{field_name} must be an http(s) URL, got {value!r}")


def validate_config(config: BlogConfig) -> None:
    """
    Check value constraints that YAML typing cannot express.

    Raises:
        ConfigurationError: If any value is out of range.
    """
    _require_http_url(config.cms.origin, "cms.origin")
    _require_http_url(config.site.url, "site.url")

    if not isinstance(config.cms.revalidate, int) or config.cms.revalidate <= 0:
        raise ConfigurationError("cms.revalidate must be a positive number of seconds")

    for name in ("list_excerpt_length", "meta_excerpt_length"):
        value = getattr(config.cleaner, name)
        if not isinstance(value, int) or value <= 0:
            raise ConfigurationError(f"cleaner.{name} must be positive")

    if not config.cleaner.allowed_tags:
        raise ConfigurationError("cleaner.allowed_tags must not be empty")

    if config.logging.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigurationError(f"Unknown log level: {config.logging.log_level}")

    if config.logging.log_format.lower() not in LOG_FORMATS:
        raise ConfigurationError(f"Unknown log format: {config.logging.log_format}")


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping")
    return value


def _build(cls, values: dict, section: str):
    try:
        return cls(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid '{section}' section: {e}") from e


def load_config(config_path: Path) -> BlogConfig:
    """
    Load and validate configuration from a YAML file.

    Args:
        config_path: Path to config.yaml

    Returns:
        BlogConfig with environment overrides applied

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config: {e}") from e

    if not raw_config:
        raise ConfigurationError("Config file is empty")
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Config file must contain a mapping")

    return BlogConfig(
        site=_build(SiteSettings, _section(raw_config, "site"), "site"),
        cms=_build(CMSSettings, _section(raw_config, "cms"), "cms"),
        http=_build(HTTPSettings, _section(raw_config, "http"), "http"),
        cleaner=_build(CleanerSettings, _section(raw_config, "cleaner"), "cleaner"),
        logging=_build(LoggingSettings, _section(raw_config, "logging"), "logging"),
        output_dir=raw_config.get("output_dir", "public"),
    )
