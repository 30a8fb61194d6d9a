"""Typed clients for the Directus CMS and the Leverade tournament API."""

__version__ = "0.1.0"
