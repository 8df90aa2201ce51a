"""SEO metadata for rendered pages: title, description, canonical URL and social cards."""

import html
from dataclasses import dataclass, field

from .cleaner import extract_excerpt, strip_tags
from .config import SiteSettings
from .models.page import BlogPage

NOT_FOUND_TITLE = "Page Not Found"

# Social preview image size advertised to Open Graph consumers
OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630


@dataclass
class OpenGraphImage:
    url: str
    width: int = OG_IMAGE_WIDTH
    height: int = OG_IMAGE_HEIGHT
    alt: str = ""


@dataclass
class PageMetadata:
    """Everything that goes into a page's ``<head>``."""

    title: str
    description: str = ""
    canonical: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_url: str | None = None
    og_site_name: str | None = None
    og_locale: str | None = None
    og_type: str | None = None
    og_images: list[OpenGraphImage] = field(default_factory=list)
    twitter_card: str | None = None
    twitter_images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Nested representation, grouped the way the tags are grouped."""
        data: dict = {"title": self.title, "description": self.description}
        if self.canonical:
            data["alternates"] = {"canonical": self.canonical}
        if self.og_type:
            data["openGraph"] = {
                "title": self.og_title,
                "description": self.og_description,
                "url": self.og_url,
                "siteName": self.og_site_name,
                "images": [vars(image) for image in self.og_images],
                "locale": self.og_locale,
                "type": self.og_type,
            }
        if self.twitter_card:
            data["twitter"] = {
                "card": self.twitter_card,
                "title": self.og_title,
                "description": self.og_description,
                "images": list(self.twitter_images),
            }
        return data

    def to_head_html(self) -> str:
        """Render the metadata as ``<head>`` tags, one per line."""
        esc = html.escape
        tags = [f"<title>{esc(self.title)}</title>"]

        if self.description:
            tags.append(f'<meta name="description" content="{esc(self.description)}">')
        if self.canonical:
            tags.append(f'<link rel="canonical" href="{esc(self.canonical)}">')

        og_properties = [
            ("og:title", self.og_title),
            ("og:description", self.og_description),
            ("og:url", self.og_url),
            ("og:site_name", self.og_site_name),
            ("og:locale", self.og_locale),
            ("og:type", self.og_type),
        ]
        for prop, value in og_properties:
            if value:
                tags.append(f'<meta property="{prop}" content="{esc(value)}">')

        for image in self.og_images:
            tags.append(f'<meta property="og:image" content="{esc(image.url)}">')
            tags.append(f'<meta property="og:image:width" content="{image.width}">')
            tags.append(f'<meta property="og:image:height" content="{image.height}">')
            if image.alt:
                tags.append(f'<meta property="og:image:alt" content="{esc(image.alt)}">')

        if self.twitter_card:
            tags.append(f'<meta name="twitter:card" content="{esc(self.twitter_card)}">')
            if self.og_title:
                tags.append(f'<meta name="twitter:title" content="{esc(self.og_title)}">')
            if self.og_description:
                tags.append(
                    f'<meta name="twitter:description" content="{esc(self.og_description)}">'
                )
            for url in self.twitter_images:
                tags.append(f'<meta name="twitter:image" content="{esc(url)}">')

        return "\n".join(tags)


def plain_title(page: BlogPage) -> str:
    """Page title with markup stripped and entities decoded."""
    return html.unescape(strip_tags(page.title))


def page_description(page: BlogPage, max_length: int = 160) -> str:
    """Excerpt of the CMS excerpt if there is one, else of the content."""
    source = page.excerpt if page.excerpt else page.content
    return html.unescape(extract_excerpt(source, max_length))


def canonical_url(site: SiteSettings, slug: str) -> str:
    return f"{site.url.rstrip('/')}/{slug}"


def build_metadata(page: BlogPage, site: SiteSettings, description_length: int = 160) -> PageMetadata:
    """
    Build the metadata for a post page.

    Args:
        page: The CMS page
        site: Site identity (name, public URL, locale)
        description_length: Maximum description length before the ellipsis

    Returns:
        PageMetadata with Open Graph and Twitter card fields filled in
    """
    title = plain_title(page)
    description = page_description(page, description_length)
    canonical = canonical_url(site, page.slug)
    og_image = page.og_image_url

    return PageMetadata(
        title=f"{title} | {site.name}",
        description=description,
        canonical=canonical,
        og_title=title,
        og_description=description,
        og_url=canonical,
        og_site_name=site.name,
        og_locale=site.locale,
        og_type="article",
        og_images=[OpenGraphImage(url=og_image, alt=title)] if og_image else [],
        twitter_card="summary_large_image",
        twitter_images=[og_image] if og_image else [],
    )


def build_index_metadata(site: SiteSettings) -> PageMetadata:
    """Metadata for the post listing page."""
    return PageMetadata(title=site.name, canonical=site.url.rstrip("/") + "/")


def not_found_metadata() -> PageMetadata:
    """Metadata for a slug with no matching page."""
    return PageMetadata(title=NOT_FOUND_TITLE)
