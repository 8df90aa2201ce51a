#!/usr/bin/env python3
"""
Campusify Blog Builder
======================

Command-line interface for rendering the blog from the CMS.

Usage:
    python blog.py build                      # Render the whole site
    python blog.py build --slug my-post       # Render a single post
    python blog.py build --dry-run            # Preview without writing files
    python blog.py list-pages                 # List pages published by the CMS
    python blog.py show my-post               # Print cleaned content of a post
    python blog.py clean page.html            # Clean a local HTML file
    python blog.py validate                   # Check configuration
    python blog.py status                     # Show last build results
"""

import html
import json
import signal
import sys
from datetime import datetime
from pathlib import Path

import click
import yaml

from campusblog.api import CMSClient, CMSError
from campusblog.cleaner import ContentCleaner, extract_excerpt, extract_first_heading
from campusblog.config import BlogConfig, ConfigurationError, load_config
from campusblog.generators import SiteGenerator
from campusblog.logger import get_logger, setup_logging
from campusblog.seo import build_metadata
from campusblog.utils import HTTPClient

# Status file for tracking build results
STATUS_FILE = ".build_status.json"

# Set by the signal handler; checked between pages
_interrupted = False


def setup_logging_from_config(
    config: BlogConfig,
    config_dir: Path,
    log_level_override: str | None = None,
    log_file_override: Path | None = None,
) -> None:
    """Configure logging based on config file and CLI overrides."""
    logging_cfg = config.logging

    effective_log_level = log_level_override or logging_cfg.log_level
    effective_log_file = log_file_override or logging_cfg.log_file
    log_dir = config_dir if effective_log_file else None

    setup_logging(
        level=effective_log_level,
        log_file=str(effective_log_file) if effective_log_file else None,
        log_dir=log_dir,
        log_format=logging_cfg.log_format,
        max_bytes=logging_cfg.max_file_size,
        backup_count=logging_cfg.backup_count,
    )


def build_http_client(config: BlogConfig, config_dir: Path) -> HTTPClient:
    """HTTP client whose cache TTL is the CMS revalidation interval."""
    http_cfg = config.http
    return HTTPClient(
        timeout=http_cfg.timeout,
        retry_count=http_cfg.retry_count,
        retry_delay=http_cfg.retry_delay,
        user_agent=http_cfg.user_agent,
        cache_dir=config_dir / http_cfg.cache_dir if http_cfg.cache_dir else None,
        cache_ttl=config.cms.revalidate,
    )


def build_cleaner(config: BlogConfig) -> ContentCleaner:
    return ContentCleaner(
        origin=config.cms.origin,
        allowed_tags=config.cleaner.allowed_tags,
        allowed_attributes=config.cleaner.allowed_attributes,
    )


def build_cms_client(config: BlogConfig, http_client: HTTPClient) -> CMSClient:
    return CMSClient(http_client, origin=config.cms.origin, pages_path=config.cms.pages_path)


def save_status(config_dir: Path, status: dict) -> None:
    """Save build status to file."""
    status_path = config_dir / STATUS_FILE
    status["timestamp"] = datetime.now().astimezone().isoformat()
    with open(status_path, "w", encoding="utf-8") as f:
        json.dump(status, f, indent=2)


def load_status(config_dir: Path) -> dict | None:
    """Load last build status from file."""
    status_path = config_dir / STATUS_FILE
    if not status_path.exists():
        return None
    with open(status_path, encoding="utf-8") as f:
        return json.load(f)


def signal_handler(signum, frame):
    """Handle interrupt signals gracefully."""
    global _interrupted
    _interrupted = True
    click.echo(click.style("\n\nInterrupt received, finishing current page...", fg="yellow"))


def is_interrupted() -> bool:
    return _interrupted


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=Path(__file__).parent / "config.yaml",
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override log level from config",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path from config",
)
@click.version_option(version="1.0.0", prog_name="campusify-blog")
@click.pass_context
def cli(ctx, config: Path, log_level: str | None, log_file: Path | None):
    """
    Campusify Blog - render the blog from the headless CMS.

    Fetches pages from the CMS API, cleans their HTML, and writes a static
    site with a post listing, one page per post, and SEO metadata.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["config_dir"] = config.parent

    try:
        ctx.obj["config"] = load_config(config)
    except ConfigurationError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)

    setup_logging_from_config(ctx.obj["config"], config.parent, log_level, log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option(
    "--slug",
    "-s",
    type=str,
    default=None,
    help="Render only the post with this slug",
)
@click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    default=False,
    help="Preview actions without writing files",
)
@click.option(
    "--refresh",
    is_flag=True,
    default=False,
    help="Discard cached CMS responses before fetching",
)
@click.pass_context
def build(ctx, slug: str | None, dry_run: bool, refresh: bool):
    """
    Render the site into the output directory.

    By default renders the post listing, every post and the 404 page.
    Use --slug to render a single post.
    Use --refresh to ignore responses cached within the revalidation interval.
    """
    cfg: BlogConfig = ctx.obj["config"]
    config_dir: Path = ctx.obj["config_dir"]
    logger = get_logger("campusblog.cli")

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    output_dir = config_dir / cfg.output_dir
    logger.info("Campusify Blog build starting...")
    logger.debug(f"Output directory: {output_dir.resolve()}")

    if dry_run:
        click.echo(click.style("DRY RUN MODE - No files will be written", fg="yellow"))

    generator = SiteGenerator(
        output_dir=output_dir,
        site=cfg.site,
        cleaner=build_cleaner(cfg),
        cms_origin=cfg.cms.origin,
        list_excerpt_length=cfg.cleaner.list_excerpt_length,
        meta_excerpt_length=cfg.cleaner.meta_excerpt_length,
        dry_run=dry_run,
    )

    pages_total = 0

    with build_http_client(cfg, config_dir) as http_client:
        if refresh and http_client.cache:
            http_client.cache.clear()
        cms = build_cms_client(cfg, http_client)

        if slug:
            page = cms.fetch_page_by_slug(slug)
            if page is None:
                click.echo(click.style(f"Page not found: {slug}", fg="red"), err=True)
                sys.exit(1)
            pages_total = 1
            results = [generator.generate_post(page)]
        else:
            try:
                pages = cms.fetch_all_pages()
            except CMSError as e:
                logger.error(f"Build aborted: {e}")
                click.echo(click.style(f"Error: {e}", fg="red"), err=True)
                sys.exit(1)
            pages_total = len(pages)
            results = generator.generate_site(pages, should_stop=is_interrupted)

    errors = sum(1 for r in results if not r.success)
    stats = generator.get_stats()

    click.echo("\n" + "=" * 50)
    click.echo(click.style("BUILD SUMMARY", bold=True))
    click.echo("=" * 50)
    click.echo(f"  Pages fetched:      {pages_total}")
    click.echo(f"  Files created:      {stats['created']}")
    click.echo(f"  Pages skipped:      {stats['skipped']}")
    click.echo(f"  Errors:             {errors}")
    click.echo("=" * 50)

    if dry_run:
        click.echo(click.style("\nDRY RUN - No files were written", fg="yellow"))

    save_status(
        config_dir,
        {
            "pages_total": pages_total,
            "files_created": stats["created"],
            "pages_skipped": stats["skipped"],
            "errors": errors,
            "dry_run": dry_run,
            "interrupted": _interrupted,
        },
    )

    if _interrupted:
        sys.exit(130)
    sys.exit(1 if errors else 0)


@cli.command("list-pages")
@click.pass_context
def list_pages(ctx):
    """List the pages published by the CMS."""
    cfg: BlogConfig = ctx.obj["config"]

    with build_http_client(cfg, ctx.obj["config_dir"]) as http_client:
        try:
            pages = build_cms_client(cfg, http_client).fetch_all_pages()
        except CMSError as e:
            click.echo(click.style(f"Error: {e}", fg="red"), err=True)
            sys.exit(1)

    click.echo("\nPublished pages:")
    click.echo("-" * 78)
    click.echo(f"{'ID':<8} {'SLUG':<30} {'DATE':<12} {'TITLE':<26}")
    click.echo("-" * 78)
    for page in pages:
        title = html.unescape(extract_excerpt(page.title, 26))
        click.echo(f"{page.id:<8} {page.slug:<30} {page.date.strftime('%Y-%m-%d'):<12} {title:<26}")
    click.echo("-" * 78)
    click.echo(f"Total: {len(pages)} pages")


@cli.command()
@click.argument("slug")
@click.option(
    "--metadata",
    "-m",
    is_flag=True,
    default=False,
    help="Print SEO metadata as YAML instead of the cleaned content",
)
@click.pass_context
def show(ctx, slug: str, metadata: bool):
    """Print the cleaned content (or metadata) of one post."""
    cfg: BlogConfig = ctx.obj["config"]

    with build_http_client(cfg, ctx.obj["config_dir"]) as http_client:
        page = build_cms_client(cfg, http_client).fetch_page_by_slug(slug)

    if page is None:
        click.echo(click.style(f"Page not found: {slug}", fg="red"), err=True)
        sys.exit(1)

    if metadata:
        meta = build_metadata(page, cfg.site, cfg.cleaner.meta_excerpt_length)
        click.echo(yaml.dump(meta.to_dict(), allow_unicode=True, sort_keys=False, width=1000))
    else:
        click.echo(build_cleaner(cfg).clean(page.content))


@cli.command()
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--excerpt",
    "-e",
    type=int,
    default=None,
    help="Print a plain-text excerpt of this length instead of cleaned HTML",
)
@click.option(
    "--heading",
    is_flag=True,
    default=False,
    help="Print the first h1/h2 heading instead of cleaned HTML",
)
@click.pass_context
def clean(ctx, source, excerpt: int | None, heading: bool):
    """
    Clean a local HTML file (or stdin) and print the result.

    Applies the same pipeline used when rendering posts.
    """
    cfg: BlogConfig = ctx.obj["config"]
    raw = source.read()

    if heading:
        found = extract_first_heading(raw)
        if found is None:
            click.echo(click.style("No heading found", fg="yellow"), err=True)
            sys.exit(1)
        click.echo(found)
    elif excerpt is not None:
        if excerpt <= 0:
            raise click.BadParameter("must be positive", param_hint="--excerpt")
        click.echo(extract_excerpt(raw, excerpt))
    else:
        click.echo(build_cleaner(cfg).clean(raw))


@cli.command()
@click.pass_context
def validate(ctx):
    """
    Validate configuration.

    Configuration values are checked when loaded; this additionally checks
    the output and cache directories.
    """
    cfg: BlogConfig = ctx.obj["config"]
    config_path: Path = ctx.obj["config_path"]
    config_dir: Path = ctx.obj["config_dir"]

    warnings = []

    click.echo("\nValidating configuration...\n")
    click.echo(click.style(f"  ✓ {config_path.name} is valid", fg="green"))
    click.echo(f"    CMS origin:     {cfg.cms.origin}")
    click.echo(f"    Site URL:       {cfg.site.url}")
    click.echo(f"    Revalidate:     {cfg.cms.revalidate}s")

    unknown_tags = sorted(set(cfg.cleaner.allowed_tags) - set(ContentCleaner().allowed_tags))
    if unknown_tags:
        warnings.append(f"Allow-list extends default tags: {', '.join(unknown_tags)}")

    output_dir = config_dir / cfg.output_dir
    if output_dir.exists():
        click.echo(click.style(f"  ✓ output_dir exists: {output_dir}", fg="green"))
    else:
        warnings.append(f"output_dir does not exist (will be created): {output_dir}")

    click.echo("\n" + "=" * 50)
    if warnings:
        click.echo(click.style("VALIDATION PASSED WITH WARNINGS", fg="yellow", bold=True))
    else:
        click.echo(click.style("VALIDATION PASSED", fg="green", bold=True))
    click.echo("=" * 50)

    if warnings:
        click.echo("\nWarnings:")
        for warning in warnings:
            click.echo(click.style(f"  ! {warning}", fg="yellow"))

    click.echo()


@cli.command()
@click.pass_context
def status(ctx):
    """Show last build results."""
    status_data = load_status(ctx.obj["config_dir"])

    if not status_data:
        click.echo("No previous build status found.")
        click.echo("Run 'python blog.py build' to build the site.")
        return

    click.echo("\n" + "=" * 50)
    click.echo(click.style("LAST BUILD STATUS", bold=True))
    click.echo("=" * 50)
    click.echo(f"  Timestamp:          {status_data.get('timestamp', 'Unknown')}")
    click.echo(f"  Pages fetched:      {status_data.get('pages_total', 0)}")
    click.echo(f"  Files created:      {status_data.get('files_created', 0)}")
    click.echo(f"  Pages skipped:      {status_data.get('pages_skipped', 0)}")
    click.echo(f"  Errors:             {status_data.get('errors', 0)}")

    if status_data.get("dry_run"):
        click.echo(click.style("  Mode:               DRY RUN", fg="yellow"))

    if status_data.get("interrupted"):
        click.echo(click.style("  Status:             INTERRUPTED", fg="yellow"))
    elif status_data.get("errors", 0) > 0:
        click.echo(click.style("  Status:             COMPLETED WITH ERRORS", fg="red"))
    else:
        click.echo(click.style("  Status:             SUCCESS", fg="green"))

    click.echo("=" * 50)


if __name__ == "__main__":
    cli()
