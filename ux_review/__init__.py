"""Browser-driven UX review of web pages."""

__version__ = "0.1.0"
