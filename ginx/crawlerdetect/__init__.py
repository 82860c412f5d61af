"""DNS-based verification strategies for search engine crawlers."""

__all__ = ["strategy"]