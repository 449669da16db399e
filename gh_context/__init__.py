"""Context assembly for answering questions about GitHub issues and pull requests."""

__version__ = "0.1.0"
