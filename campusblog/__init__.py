"""Campusify Blog - static site builder for pages published through a headless CMS."""

from .api import CMSClient, CMSError
from .cleaner import (
    ContentCleaner,
    clean_blog_content,
    extract_excerpt,
    extract_first_heading,
    post_process,
    sanitize,
)
from .models.page import BlogPage, SeoMeta

__version__ = "1.0.0"

__all__ = [
    "BlogPage",
    "CMSClient",
    "CMSError",
    "ContentCleaner",
    "SeoMeta",
    "clean_blog_content",
    "extract_excerpt",
    "extract_first_heading",
    "post_process",
    "sanitize",
]
