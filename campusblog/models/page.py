"""Blog page data model matching the WordPress REST pages payload."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class SeoMeta:
    """SEO fields published by the CMS SEO plugin (``yoast_head_json``)."""

    title: str | None = None
    description: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_image: list[str] = field(default_factory=list)
    canonical: str | None = None

    @property
    def og_image_url(self) -> str:
        """First social preview image URL, or an empty string."""
        return self.og_image[0] if self.og_image else ""

    @classmethod
    def from_dict(cls, data: dict) -> "SeoMeta":
        images = [
            image["url"]
            for image in data.get("og_image") or []
            if isinstance(image, dict) and image.get("url")
        ]
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            og_title=data.get("og_title"),
            og_description=data.get("og_description"),
            og_image=images,
            canonical=data.get("canonical"),
        )


def _rendered(data: dict, key: str) -> str:
    """Read ``data[key]["rendered"]``, tolerating a missing or null field."""
    value = data.get(key) or {}
    if isinstance(value, dict):
        value = value.get("rendered") or ""
    if not isinstance(value, str):
        raise ValueError(f"Page field {key!r} must be an object or string")
    return value


def _timestamp(data: dict, key: str) -> datetime | None:
    value = data.get(key)
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Page field {key!r} must be an ISO 8601 string")
    return datetime.fromisoformat(value)


@dataclass
class BlogPage:
    """
    A single CMS page as consumed by the site.

    ``title``, ``content`` and ``excerpt`` hold the CMS ``*.rendered`` strings
    untouched; cleaning happens at render time.
    """

    id: int
    date: datetime
    slug: str
    title: str
    content: str
    excerpt: str = ""
    link: str = ""
    status: str = "publish"
    modified: datetime | None = None
    seo: SeoMeta | None = None

    def __post_init__(self):
        if not self.slug:
            raise ValueError("Page slug is required")
        if not self.date:
            raise ValueError("Page date is required")

    @property
    def og_image_url(self) -> str:
        return self.seo.og_image_url if self.seo else ""

    @classmethod
    def from_dict(cls, data: dict) -> "BlogPage":
        """
        Create a BlogPage from one item of the pages endpoint response.

        Raises:
            ValueError: If ``id``, ``date`` or ``slug`` is missing or malformed.
        """
        if "id" not in data:
            raise ValueError("Page id is required")

        slug = data.get("slug") or ""
        if not isinstance(slug, str):
            raise ValueError("Page slug must be a string")

        try:
            page_id = int(data["id"])
        except (TypeError, ValueError):
            raise ValueError(f"Page id must be an integer, got {data['id']!r}") from None

        seo_data = data.get("yoast_head_json")
        seo = SeoMeta.from_dict(seo_data) if isinstance(seo_data, dict) else None

        return cls(
            id=page_id,
            date=_timestamp(data, "date"),
            slug=slug,
            title=_rendered(data, "title"),
            content=_rendered(data, "content"),
            excerpt=_rendered(data, "excerpt"),
            link=data.get("link", ""),
            status=data.get("status", "publish"),
            modified=_timestamp(data, "modified"),
            seo=seo,
        )
