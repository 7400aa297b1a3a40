"""Sitesmith: prompt-to-website generation service."""

__version__ = "0.1.0"
