"""Core layer for the site adapters.

Display entities, locale resolution and query building shared by the CMS
and Leverade adapters.
"""

from .entities import (
    CalendarEvent,
    Image,
    ListMeta,
    ListResult,
    NewsCategory,
    NewsEntry,
    NewsTranslation,
    Player,
    Team,
    Venue,
)
from .filters import FilterExpression, all_of, any_of, condition
from .locale import Found, LocaleContext, NotFound, first_match, locale_candidates

__all__ = [
    # Entities
    "CalendarEvent",
    "Image",
    "ListMeta",
    "ListResult",
    "NewsCategory",
    "NewsEntry",
    "NewsTranslation",
    "Player",
    "Team",
    "Venue",
    # Filters
    "FilterExpression",
    "all_of",
    "any_of",
    "condition",
    # Locales
    "Found",
    "LocaleContext",
    "NotFound",
    "first_match",
    "locale_candidates",
]
