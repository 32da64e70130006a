"""Building blocks for small web applications: caches, configuration, request context, error pages, flash messages and an HTTP client."""

__version__ = "0.9.0"