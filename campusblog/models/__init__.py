"""Data models for CMS content."""

from .page import BlogPage, SeoMeta

__all__ = ["BlogPage", "SeoMeta"]
