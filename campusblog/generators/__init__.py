"""Content generators for static HTML output."""

from .html import GenerateResult, GeneratorStats, SiteGenerator

__all__ = ["GenerateResult", "GeneratorStats", "SiteGenerator"]
