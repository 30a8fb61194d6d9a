"""Adapters layer for the site adapters.

This layer contains the clients that translate between the display entities
and external systems (the Directus CMS and the Leverade API).
"""
