"""Clean CMS page HTML for direct embedding and derive plain text from it.

Two stages turn raw ``content.rendered`` markup into embeddable HTML:

1. :func:`sanitize` drops ``<script>``/``<style>`` elements with their content,
   then filters everything else against a tag and attribute allow-list.
2. :func:`post_process` runs an ordered chain of textual rewrites over the
   sanitized markup (whitespace, empty paragraphs, image URLs, lazy loading).

:func:`extract_excerpt` and :func:`extract_first_heading` work on the raw
markup directly and are independent of the two stages above.
"""

import re
from collections.abc import Callable, Iterable
from functools import partial

import bleach
from bs4 import BeautifulSoup

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_ORIGIN = "https://campusify.io"

ALLOWED_TAGS: frozenset[str] = frozenset(
    [
        # Headings
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        # Text
        "p",
        "br",
        "strong",
        "em",
        "b",
        "i",
        "u",
        "span",
        # Lists
        "ul",
        "ol",
        "li",
        # Links and media
        "a",
        "img",
        # Blocks
        "blockquote",
        "pre",
        "code",
        "div",
        "section",
        "article",
        # Tables
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
    ]
)

ALLOWED_ATTRIBUTES: frozenset[str] = frozenset(
    ["href", "title", "alt", "src", "width", "height", "id"]
)

# Elements removed together with everything inside them
FORBIDDEN_ELEMENTS: tuple[str, ...] = ("script", "style")

ALLOWED_PROTOCOLS: frozenset[str] = frozenset(["http", "https", "mailto"])

_QUOTED_VALUE = r"""(?:"[^"]*"|'[^']*')"""

_STYLE_BLOCK_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_STYLE_ATTR_RE = re.compile(rf"\s+style\s*=\s*{_QUOTED_VALUE}", re.IGNORECASE)
_CLASS_ATTR_RE = re.compile(rf"\s+class\s*=\s*{_QUOTED_VALUE}", re.IGNORECASE)
_DATA_ATTR_RE = re.compile(rf"\s+data-[\w:.-]*\s*=\s*{_QUOTED_VALUE}", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_INTER_TAG_SPACE_RE = re.compile(r">\s+<")
_EMPTY_PARAGRAPH_RE = re.compile(r"<p(?:\s[^>]*)?>(?:\s|&nbsp;)*</p>", re.IGNORECASE)
# One attribute of a start tag: name, then an optional quoted or bare value.
# Quoted values may hold ">", the other quote character or "name=" text.
_ATTR_VALUE = r"""(?:"[^"]*"|'[^']*'|[^\s"'=<>`]+)"""
_TAG_ATTR_RE = re.compile(rf"""(\s+)([^\s"'>/=]+)(?:\s*=\s*({_ATTR_VALUE}))?""")
_IMG_TAG_RE = re.compile(
    rf"""<img\b((?:\s+[^\s"'>/=]+(?:\s*=\s*{_ATTR_VALUE})?)*)\s*(/?)>""", re.IGNORECASE
)

_TAG_RE = re.compile(r"<[^>]*>")
_TRAILING_PARTIAL_WORD_RE = re.compile(r"\s+\S*$")
_HEADING_RES = tuple(
    re.compile(rf"<{tag}[^>]*>(.*?)</{tag}>", re.IGNORECASE | re.DOTALL)
    for tag in ("h1", "h2")
)

ELLIPSIS = "..."
DEFAULT_EXCERPT_LENGTH = 160


# Post-processing steps. Each one is a total str -> str function.


def strip_style_blocks(html: str) -> str:
    return _STYLE_BLOCK_RE.sub("", html)


def strip_style_attributes(html: str) -> str:
    return _STYLE_ATTR_RE.sub("", html)


def strip_class_attributes(html: str) -> str:
    return _CLASS_ATTR_RE.sub("", html)


def collapse_whitespace(html: str) -> str:
    return _WHITESPACE_RE.sub(" ", html)


def collapse_inter_tag_whitespace(html: str) -> str:
    return _INTER_TAG_SPACE_RE.sub("><", html)


def remove_empty_paragraphs(html: str) -> str:
    return _EMPTY_PARAGRAPH_RE.sub("", html)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _attribute_names(attrs: str) -> set[str]:
    return {m.group(2).lower() for m in _TAG_ATTR_RE.finditer(attrs)}


def absolutize_image_sources(html: str, origin: str = DEFAULT_ORIGIN) -> str:
    """Prefix site-relative ``<img src="/...">`` values with ``origin``."""
    base = origin.rstrip("/")

    def _rewrite_attr(match: re.Match) -> str:
        space, name, value = match.groups()
        if name.lower() != "src" or value is None:
            return match.group(0)
        src = _unquote(value)
        # "//host/..." is protocol-relative and already absolute
        if not src.startswith("/") or src.startswith("//"):
            return match.group(0)
        # Single quotes only when the value itself holds a double quote
        quote = "'" if '"' in src else '"'
        return f"{space}{name}={quote}{base}{src}{quote}"

    def _rewrite_tag(match: re.Match) -> str:
        tag, attrs = match.group(0), match.group(1)
        return tag[:4] + _TAG_ATTR_RE.sub(_rewrite_attr, attrs) + tag[4 + len(attrs):]

    return _IMG_TAG_RE.sub(_rewrite_tag, html)


def add_lazy_loading(html: str) -> str:
    """Add ``loading="lazy"`` to images that do not declare ``loading``."""

    def _inject(match: re.Match) -> str:
        attrs, self_closing = match.groups()
        if "loading" in _attribute_names(attrs):
            return match.group(0)
        closing = " />" if self_closing else ">"
        return f'{match.group(0)[:4]}{attrs} loading="lazy"{closing}'

    return _IMG_TAG_RE.sub(_inject, html)


def strip_data_attributes(html: str) -> str:
    return _DATA_ATTR_RE.sub("", html)


def trim(html: str) -> str:
    return html.strip()


def build_post_process_steps(origin: str = DEFAULT_ORIGIN) -> tuple[Callable[[str], str], ...]:
    """
    Return the ordered rewrite chain applied after sanitization.

    Whitespace is collapsed before empty paragraphs are removed, so that
    ``<p> \\n </p>`` is recognised as empty. Image URL rewriting and lazy-load
    injection touch different attributes of the same tag and run separately.
    """
    return (
        strip_style_blocks,
        strip_style_attributes,
        strip_class_attributes,
        collapse_whitespace,
        collapse_inter_tag_whitespace,
        remove_empty_paragraphs,
        partial(absolutize_image_sources, origin=origin),
        add_lazy_loading,
        strip_data_attributes,
        trim,
    )


POST_PROCESS_STEPS = build_post_process_steps()


class ContentCleaner:
    """
    Configurable sanitize + post-process pipeline.

    Holds the allow-lists and the CMS origin so callers can clean content for
    another site or with a narrower vocabulary without touching module state.
    """

    def __init__(
        self,
        origin: str = DEFAULT_ORIGIN,
        allowed_tags: Iterable[str] = ALLOWED_TAGS,
        allowed_attributes: Iterable[str] = ALLOWED_ATTRIBUTES,
        forbidden_elements: Iterable[str] = FORBIDDEN_ELEMENTS,
    ):
        self.origin = origin
        self.allowed_tags = frozenset(t.lower() for t in allowed_tags)
        self.allowed_attributes = frozenset(a.lower() for a in allowed_attributes)
        self.forbidden_elements = tuple(forbidden_elements)
        self.steps = build_post_process_steps(origin)

    def sanitize(self, raw: str | None) -> str:
        """
        Filter ``raw`` down to the allowed tags and attributes.

        Forbidden elements are dropped with their content. Any other tag not in
        the allow-list is unwrapped so that its text survives. Never raises on
        malformed markup.
        """
        if not raw:
            return ""

        soup = BeautifulSoup(raw, "html.parser")
        for element in soup.find_all(list(self.forbidden_elements)):
            element.decompose()

        return bleach.clean(
            soup.decode(),
            tags=self.allowed_tags,
            attributes=self._allow_attribute,
            protocols=ALLOWED_PROTOCOLS,
            strip=True,
            strip_comments=True,
        )

    def _allow_attribute(self, tag: str, name: str, value: str) -> bool:
        name = name.lower()
        if name.startswith("data-") or name in ("style", "class"):
            return False
        return name in self.allowed_attributes

    def post_process(self, sanitized: str | None) -> str:
        """Run the rewrite chain over already-sanitized markup."""
        if not sanitized:
            return ""
        html = sanitized
        for step in self.steps:
            html = step(html)
        return html

    def clean(self, raw: str | None) -> str:
        """Sanitize then post-process ``raw``; the result is safe to embed as-is."""
        if not raw:
            return ""
        cleaned = self.post_process(self.sanitize(raw))
        logger.debug(f"Cleaned content: {len(raw)} -> {len(cleaned)} chars")
        return cleaned


_default_cleaner = ContentCleaner()


def sanitize(raw: str | None) -> str:
    """Sanitize with the default allow-lists."""
    return _default_cleaner.sanitize(raw)


def post_process(sanitized: str | None, origin: str = DEFAULT_ORIGIN) -> str:
    """Apply the post-processing chain, rewriting relative images against ``origin``."""
    if origin == _default_cleaner.origin:
        return _default_cleaner.post_process(sanitized)
    return ContentCleaner(origin=origin).post_process(sanitized)


def clean_blog_content(raw: str | None, origin: str = DEFAULT_ORIGIN) -> str:
    """
    Turn raw CMS page HTML into markup safe to inject verbatim.

    Args:
        raw: ``content.rendered`` from the CMS, possibly empty.
        origin: Origin prefixed to site-relative image sources.

    Returns:
        Cleaned HTML, or an empty string for empty input.
    """
    if origin == _default_cleaner.origin:
        return _default_cleaner.clean(raw)
    return ContentCleaner(origin=origin).clean(raw)


def strip_tags(html: str | None) -> str:
    """Replace every tag with a space and collapse whitespace."""
    if not html:
        return ""
    text = _TAG_RE.sub(" ", html)
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_excerpt(html: str | None, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """
    Extract a plain-text excerpt suitable for a meta description or card.

    Tags are replaced by spaces, whitespace is collapsed, and text longer than
    ``max_length`` is cut at ``max_length`` characters, backed off to the last
    whole word and suffixed with ``...``.

    Args:
        html: Raw HTML (``excerpt.rendered`` or ``content.rendered``).
        max_length: Maximum length before the ellipsis.

    Returns:
        Plain text excerpt, empty for empty input.
    """
    if not html:
        return ""

    text = strip_tags(html)

    if len(text) <= max_length:
        return text

    truncated = _TRAILING_PARTIAL_WORD_RE.sub("", text[:max_length])
    return truncated + ELLIPSIS


def extract_first_heading(html: str | None) -> str | None:
    """
    Return the text of the first ``<h1>``, else of the first ``<h2>``.

    An ``<h1>`` anywhere in the document wins over an earlier ``<h2>``.
    Returns None when neither heading exists.
    """
    if not html:
        return None

    for heading_re in _HEADING_RES:
        match = heading_re.search(html)
        if match:
            return _TAG_RE.sub("", match.group(1)).strip()

    return None
