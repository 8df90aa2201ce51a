"""Static HTML site generator: post listing, one page per post, and a 404 page."""

import html
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..cleaner import ContentCleaner, extract_excerpt
from ..config import SiteSettings
from ..logger import get_logger
from ..models.page import BlogPage
from ..seo import PageMetadata, build_index_metadata, build_metadata, not_found_metadata, plain_title

logger = get_logger(__name__)

INDEX_FILE = "index.html"
NOT_FOUND_FILE = "404.html"


@dataclass
class GeneratorStats:
    """Statistics for generator operations."""

    created: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass
class GenerateResult:
    """Result of a single generate operation."""

    success: bool
    file_path: Path | None
    action: str  # "created", "skipped", "failed"
    reason: str = ""


def format_display_date(dt: datetime) -> str:
    """Format a date as 'January 5, 2024'."""
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"


def is_safe_slug(slug: str) -> bool:
    """A slug must map to exactly one directory below the output root."""
    if not slug or slug in (".", ".."):
        return False
    return "/" not in slug and "\\" not in slug and "\x00" not in slug


class SiteGenerator:
    """
    Render blog pages to static HTML files.

    Output layout::

        index.html          post listing
        <slug>/index.html   one page per post
        404.html            not-found page

    Features:
    - Content cleaned through a configurable ContentCleaner
    - SEO metadata in every page head
    - Statistics tracking
    - Dry-run mode
    """

    def __init__(
        self,
        output_dir: Path,
        site: SiteSettings | None = None,
        cleaner: ContentCleaner | None = None,
        cms_origin: str | None = None,
        list_excerpt_length: int = 150,
        meta_excerpt_length: int = 160,
        dry_run: bool = False,
    ):
        """
        Initialize the site generator.

        Args:
            output_dir: Directory the site is written to
            site: Site identity used for titles, canonical URLs and footer
            cleaner: Content cleaner (defaults to the standard allow-lists)
            cms_origin: Origin linked from the header ("Visit ...")
            list_excerpt_length: Card excerpt length on the listing page
            meta_excerpt_length: Meta description length on post pages
            dry_run: If True, only log actions without writing files
        """
        self.output_dir = Path(output_dir)
        self.site = site or SiteSettings()
        self.cleaner = cleaner or ContentCleaner()
        self.cms_origin = cms_origin or self.cleaner.origin
        self.list_excerpt_length = list_excerpt_length
        self.meta_excerpt_length = meta_excerpt_length
        self.dry_run = dry_run
        self.stats = GeneratorStats()

    # Rendering

    def _layout(self, metadata: PageMetadata, body: str) -> str:
        esc = html.escape
        head = "\n".join(f"    {line}" for line in metadata.to_head_html().splitlines())
        return (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            "  <head>\n"
            '    <meta charset="utf-8">\n'
            '    <meta name="viewport" content="width=device-width, initial-scale=1">\n'
            f"{head}\n"
            "  </head>\n"
            "  <body>\n"
            '    <header class="site-header">\n'
            "      <nav>\n"
            f'        <a href="/" class="site-title">{esc(self.site.name)}</a>\n'
            f'        <a href="{esc(self.cms_origin)}" class="site-link">{esc(self.site.cms_link_text)}</a>\n'
            "      </nav>\n"
            "    </header>\n"
            f"{body}\n"
            '    <footer class="site-footer">\n'
            f"      <p>{esc(self.site.copyright)}</p>\n"
            "    </footer>\n"
            "  </body>\n"
            "</html>\n"
        )

    def _time_tag(self, page: BlogPage) -> str:
        return (
            f'<time datetime="{html.escape(page.date.isoformat())}">'
            f"{format_display_date(page.date)}</time>"
        )

    def render_card(self, page: BlogPage) -> str:
        """Render the listing card for one post."""
        title = html.escape(plain_title(page))
        excerpt = html.unescape(extract_excerpt(page.content, self.list_excerpt_length))
        lines = [
            '      <article class="post-card">',
            f'        <a href="/{html.escape(page.slug)}/">',
            f"          <h2>{title}</h2>",
        ]
        if excerpt:
            lines.append(f'          <p class="post-excerpt">{html.escape(excerpt)}</p>')
        lines.append(f"          {self._time_tag(page)}")
        lines.append("        </a>")
        lines.append("      </article>")
        return "\n".join(lines)

    def render_index(self, pages: list[BlogPage]) -> str:
        """Render the post listing page."""
        if pages:
            cards = "\n".join(self.render_card(page) for page in pages)
            listing = f'      <div class="post-grid">\n{cards}\n      </div>'
        else:
            listing = "      <p>No blog posts found.</p>"

        body = f"    <main>\n      <h1>Blog Posts</h1>\n{listing}\n    </main>"
        return self._layout(build_index_metadata(self.site), body)

    def render_post(self, page: BlogPage) -> str:
        """Render a single post page with cleaned content."""
        title = html.escape(plain_title(page))
        content = self.cleaner.clean(page.content)
        body = (
            "    <main>\n"
            '      <nav class="breadcrumb" aria-label="Breadcrumb">\n'
            f'        <a href="/">Blog</a> <span>/</span> <span>{title}</span>\n'
            "      </nav>\n"
            "      <article>\n"
            "        <header>\n"
            f"          <h1>{title}</h1>\n"
            f"          {self._time_tag(page)}\n"
            "        </header>\n"
            f'        <div class="blog-content">{content}</div>\n'
            "      </article>\n"
            '      <a href="/" class="back-link">&larr; Back to Blog</a>\n'
            "    </main>"
        )
        metadata = build_metadata(page, self.site, self.meta_excerpt_length)
        return self._layout(metadata, body)

    def render_not_found(self) -> str:
        body = (
            "    <main>\n"
            "      <h1>Page Not Found</h1>\n"
            '      <a href="/" class="back-link">&larr; Back to Blog</a>\n'
            "    </main>"
        )
        return self._layout(not_found_metadata(), body)

    # Writing

    def _emit(self, relative_path: str, content: str) -> GenerateResult:
        file_path = self.output_dir / relative_path

        if self.dry_run:
            logger.info(f"[DRY RUN] Would create: {file_path}")
            self.stats.created += 1
            return GenerateResult(success=True, file_path=file_path, action="created", reason="Dry run")

        try:
            self._write_file(file_path, content)
        except OSError as e:
            self.stats.failed += 1
            logger.error(f"Failed to create {file_path}: {e}")
            return GenerateResult(success=False, file_path=file_path, action="failed", reason=str(e))

        self.stats.created += 1
        logger.info(f"Created: {file_path}")
        return GenerateResult(success=True, file_path=file_path, action="created")

    def _write_file(self, file_path: Path, content: str):
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(content)

    def generate_index(self, pages: list[BlogPage]) -> GenerateResult:
        return self._emit(INDEX_FILE, self.render_index(pages))

    def generate_post(self, page: BlogPage) -> GenerateResult:
        """
        Write ``<slug>/index.html`` for a page.

        Unpublished pages are skipped. Pages whose slug would escape the
        output directory are refused.
        """
        if page.status != "publish":
            self.stats.skipped += 1
            logger.debug(f"Skipping {page.status} page: {page.slug}")
            return GenerateResult(
                success=True,
                file_path=None,
                action="skipped",
                reason=f"Status: {page.status}",
            )

        if not is_safe_slug(page.slug):
            self.stats.failed += 1
            logger.error(f"Refusing unsafe slug for page {page.id}: {page.slug!r}")
            return GenerateResult(
                success=False,
                file_path=None,
                action="failed",
                reason=f"Unsafe slug: {page.slug!r}",
            )

        logger.debug(f"Rendering page: {page.slug}")
        return self._emit(f"{page.slug}/{INDEX_FILE}", self.render_post(page))

    def generate_not_found(self) -> GenerateResult:
        return self._emit(NOT_FOUND_FILE, self.render_not_found())

    def generate_site(self, pages: list[BlogPage], should_stop=None) -> list[GenerateResult]:
        """
        Render the listing, every post and the 404 page.

        Args:
            pages: Pages to render
            should_stop: Optional callable checked between posts; returning
                True stops rendering further posts

        Returns:
            List of GenerateResult, listing first and 404 page last
        """
        results = [self.generate_index(pages)]
        for page in pages:
            if should_stop and should_stop():
                logger.warning("Rendering interrupted")
                break
            results.append(self.generate_post(page))
        results.append(self.generate_not_found())

        self._log_summary()
        return results

    def _log_summary(self):
        logger.info(
            f"Generation complete: "
            f"{self.stats.created} created, "
            f"{self.stats.skipped} skipped, "
            f"{self.stats.failed} failed"
        )

    def get_stats(self) -> dict[str, int]:
        return self.stats.to_dict()
