"""HTTP client for the CMS API with retries and a revalidating response cache."""

import hashlib
import ipaddress
import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from ..logger import get_logger

logger = get_logger(__name__)


class SSRFError(ValueError):
    """Raised when a URL targets a private/reserved network address."""


def validate_url(url: str) -> str:
    """Validate that a URL is safe to fetch.

    Rejects non-HTTP(S) schemes, localhost hostnames, and IP literals in
    private, reserved, loopback or link-local ranges.

    Args:
        url: The URL to validate.

    Returns:
        The validated URL string.

    Raises:
        SSRFError: If the URL targets a disallowed destination.
    """
    if not url or not isinstance(url, str):
        raise SSRFError("Empty or invalid URL")

    parsed = urlparse(url)

    if parsed.scheme not in ("http", "https"):
        raise SSRFError(f"Blocked non-HTTP scheme: {parsed.scheme!r}")

    hostname = parsed.hostname
    if not hostname:
        raise SSRFError(f"No hostname in URL: {url}")

    lowered = hostname.lower()
    if lowered in ("localhost", "localhost.localdomain") or lowered.endswith(".localhost"):
        raise SSRFError(f"Blocked localhost URL: {url}")

    try:
        addr = ipaddress.ip_address(hostname)
    except ValueError:
        # Regular hostname
        addr = None

    if addr is not None:
        if addr.is_private or addr.is_reserved or addr.is_loopback:
            raise SSRFError(f"Blocked private/reserved IP: {hostname}")
        if addr.is_link_local:
            raise SSRFError(f"Blocked link-local IP: {hostname}")

    return url


@dataclass
class FetchResult:
    """Outcome of a fetch: response data, or the error that prevented it."""

    url: str
    status_code: int
    text: str | None
    headers: dict[str, str] = field(default_factory=dict)
    elapsed_ms: float = 0.0
    error: str | None = None
    from_cache: bool = False

    @property
    def success(self) -> bool:
        """True for a 2xx/3xx response with no transport error."""
        return 200 <= self.status_code < 400 and self.error is None

    def json(self) -> Any:
        """
        Decode the response body as JSON.

        Raises:
            ValueError: If the fetch failed or the body is not valid JSON.
        """
        if not self.success or self.text is None:
            raise ValueError(f"No response body for {self.url}: {self.error or self.status_code}")
        return json.loads(self.text)


class ResponseCache:
    """
    File-based response cache.

    Entries older than ``ttl_seconds`` are revalidated against the network,
    mirroring the revalidation interval of the CMS pages.
    """

    def __init__(self, cache_dir: Path, ttl_seconds: int = 3600):
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _get_cache_path(self, url: str) -> Path:
        key = hashlib.sha256(url.encode()).hexdigest()
        return self.cache_dir / f"{key}.json"

    def get(self, url: str) -> FetchResult | None:
        """
        Return the cached result for ``url``, or None if missing or stale.

        Stale and unreadable entries are deleted.
        """
        cache_path = self._get_cache_path(url)

        if not cache_path.exists():
            return None

        try:
            with open(cache_path, encoding="utf-8") as f:
                data = json.load(f)

            cached_at = data.get("cached_at", 0)
            if time.time() - cached_at > self.ttl_seconds:
                logger.debug(f"Cache expired for {url}")
                cache_path.unlink(missing_ok=True)
                return None

            logger.debug(f"Cache hit for {url}")
            return FetchResult(
                url=data["url"],
                status_code=data["status_code"],
                text=data["text"],
                headers=data.get("headers", {}),
                elapsed_ms=data.get("elapsed_ms", 0),
                from_cache=True,
            )

        except (json.JSONDecodeError, KeyError) as e:
            logger.warning(f"Invalid cache file for {url}: {e}")
            cache_path.unlink(missing_ok=True)
            return None

    def set(self, result: FetchResult):
        """Store a successful result; failures are never cached."""
        if not result.success:
            return

        cache_path = self._get_cache_path(result.url)

        try:
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(
                    {
                        "url": result.url,
                        "status_code": result.status_code,
                        "text": result.text,
                        "headers": result.headers,
                        "elapsed_ms": result.elapsed_ms,
                        "cached_at": time.time(),
                    },
                    f,
                )
            logger.debug(f"Cached response for {result.url}")
        except OSError as e:
            logger.warning(f"Failed to cache response for {result.url}: {e}")

    def clear(self):
        """Remove all cached responses."""
        for cache_file in self.cache_dir.glob("*.json"):
            cache_file.unlink()
        logger.info("Cache cleared")


class HTTPClient:
    """
    HTTP client with automatic retries and optional response caching.

    Server errors (5xx), 429 and transport errors are retried with
    exponential backoff. Other 4xx responses are returned immediately.
    """

    def __init__(
        self,
        timeout: int = 30,
        retry_count: int = 3,
        retry_delay: float = 1.0,
        user_agent: str = "CampusifyBlog/1.0",
        cache_dir: Path | None = None,
        cache_ttl: int = 3600,
        verify_ssl: bool = True,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            retry_count: Number of retries after the first attempt
            retry_delay: Base delay between retries (doubled each attempt)
            user_agent: User-Agent header value
            cache_dir: Directory for response caching (None to disable)
            cache_ttl: Seconds before a cached response is revalidated
            verify_ssl: Whether to verify SSL certificates
        """
        self.timeout = timeout
        self.retry_count = retry_count
        self.retry_delay = retry_delay
        self.user_agent = user_agent
        self.verify_ssl = verify_ssl

        self.cache: ResponseCache | None = None
        if cache_dir:
            self.cache = ResponseCache(cache_dir, ttl_seconds=cache_ttl)

        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            follow_redirects=True,
            verify=verify_ssl,
        )

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch a URL, consulting the cache first.

        Never raises for network problems: failures are reported through
        ``FetchResult.error`` and ``FetchResult.success``.
        """
        try:
            validate_url(url)
        except SSRFError as e:
            logger.warning(f"URL validation failed: {e}")
            return FetchResult(url=url, status_code=0, text=None, error=str(e))

        if self.cache:
            cached = self.cache.get(url)
            if cached:
                return cached

        last_error: str | None = None

        for attempt in range(self.retry_count + 1):
            start_time = time.time()

            try:
                logger.debug(f"GET {url} (attempt {attempt + 1})")
                response = self._client.get(url)
                elapsed_ms = (time.time() - start_time) * 1000

                if response.status_code >= 500 or response.status_code == 429:
                    last_error = f"HTTP {response.status_code}"
                    logger.warning(f"HTTP {response.status_code} for {url}, retrying...")
                else:
                    result = FetchResult(
                        url=url,
                        status_code=response.status_code,
                        text=response.text if response.is_success else None,
                        headers=dict(response.headers),
                        elapsed_ms=elapsed_ms,
                        error=None if response.is_success else f"HTTP {response.status_code}",
                    )

                    if self.cache and result.success:
                        self.cache.set(result)

                    if not response.is_success:
                        logger.warning(f"HTTP {response.status_code} for {url}")

                    return result

            except httpx.RequestError as e:
                last_error = f"Request error: {e}"
                logger.warning(f"Request error for {url}: {e}, retrying...")

            if attempt < self.retry_count:
                delay = self.retry_delay * (2**attempt)
                logger.debug(f"Waiting {delay:.2f}s before retry")
                time.sleep(delay)

        logger.error(f"All retries failed for {url}")
        return FetchResult(url=url, status_code=0, text=None, error=last_error)

    def close(self):
        """Close the underlying connection pool."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
