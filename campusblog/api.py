"""Fetch blog pages from the WordPress REST API."""

from urllib.parse import quote

from .logger import get_logger
from .models.page import BlogPage
from .utils.http import HTTPClient

logger = get_logger(__name__)

DEFAULT_PAGES_PATH = "/wp-json/wp/v2/pages"


class CMSError(Exception):
    """Raised when the page listing cannot be retrieved."""

    pass


class CMSClient:
    """
    Read-only client for the CMS pages endpoint.

    The listing is required to build the site, so its failures raise
    :class:`CMSError`. A single-page lookup treats every failure as "not
    found" and returns None.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        origin: str,
        pages_path: str = DEFAULT_PAGES_PATH,
    ):
        self.http_client = http_client
        self.origin = origin.rstrip("/")
        self.pages_path = "/" + pages_path.lstrip("/")

    @property
    def pages_url(self) -> str:
        return f"{self.origin}{self.pages_path}"

    def _parse_pages(self, payload) -> list[BlogPage]:
        if not isinstance(payload, list):
            raise ValueError(f"Expected a JSON list, got {type(payload).__name__}")
        if not all(isinstance(item, dict) for item in payload):
            raise ValueError("Expected a list of page objects")
        return [BlogPage.from_dict(item) for item in payload]

    def fetch_all_pages(self) -> list[BlogPage]:
        """
        Fetch every published page.

        Raises:
            CMSError: On network failure, non-success status or a malformed payload.
        """
        result = self.http_client.fetch(self.pages_url)

        if not result.success:
            logger.error(f"Error fetching pages: {result.error or result.status_code}")
            raise CMSError(f"Failed to fetch pages: {result.error or result.status_code}")

        try:
            pages = self._parse_pages(result.json())
        except (ValueError, TypeError) as e:
            logger.error(f"Error fetching pages: {e}")
            raise CMSError(f"Invalid pages payload: {e}") from e

        logger.info(f"Fetched {len(pages)} pages from {self.pages_url}")
        return pages

    def fetch_page_by_slug(self, slug: str) -> BlogPage | None:
        """
        Fetch a single page by slug.

        Returns:
            The first matching page, or None if it does not exist or the
            request failed.
        """
        url = f"{self.pages_url}?slug={quote(slug, safe='')}"
        result = self.http_client.fetch(url)

        if not result.success:
            logger.error(f"Error fetching page by slug {slug!r}: {result.error or result.status_code}")
            return None

        try:
            pages = self._parse_pages(result.json())
        except (ValueError, TypeError) as e:
            logger.error(f"Error fetching page by slug {slug!r}: {e}")
            return None

        if not pages:
            logger.debug(f"No page found for slug {slug!r}")
            return None
        return pages[0]

    def get_all_page_slugs(self) -> list[str]:
        """Return the slug of every page, in listing order."""
        return [page.slug for page in self.fetch_all_pages()]
