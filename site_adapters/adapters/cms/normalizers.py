"""Reshaping of raw Directus items into display entities.

Everything in here is pure apart from logging: the functions take the JSON
decoded ``data`` items returned by Directus and build the dataclasses from
``site_adapters.core.entities``.
"""

import unicodedata
from typing import Any, Dict, List, Optional

import structlog

from site_adapters.core.dates import apply_time, parse_date
from site_adapters.core.entities import (
    CalendarEvent,
    Image,
    NewsCategory,
    NewsEntry,
    NewsTranslation,
    Player,
    Team,
    Venue,
)
from site_adapters.core.locale import Found, LocaleContext, Match, NotFound, first_match

logger = structlog.get_logger()

RawItem = Dict[str, Any]

# Used when the CMS returns a team without its mandatory fields
DEFAULT_TEAM_NAME = "No name"
DEFAULT_TEAM_SLUG = "unknown"
DEFAULT_TEAM_GENDER = "mixed"


def find_translation(translations: Optional[List[Optional[RawItem]]], language_code: str) -> "Match[RawItem]":
    """Find the first translation written in ``language_code``."""
    if not translations:
        return NotFound("No translations")
    match = first_match(
        translations,
        lambda translation: bool(translation) and translation.get("languages_code") == language_code,
    )
    if isinstance(match, NotFound):
        return NotFound(f"No {language_code} translation available")
    return match


def normalize_image(raw: Any) -> Optional[Image]:
    if not raw:
        return None
    if isinstance(raw, dict):
        return Image(id=raw["id"], description=raw.get("description"))
    return Image(id=str(raw))


def normalize_category(raw: RawItem) -> NewsCategory:
    """Resolve a news/category junction row to its translated slug and name.

    The category translations are filtered on the current locale by the CMS,
    so the first one (if any) is the right one. There is no fallback.
    """
    category = NewsCategory(id=raw.get("id"))
    translations = (raw.get("news_categories_id") or {}).get("translations") or []
    if translations and translations[0]:
        category.slug = translations[0].get("slug")
        category.name = translations[0].get("name")
    return category


def parse_news_translation(raw: RawItem) -> NewsTranslation:
    return NewsTranslation(
        languages_code=raw["languages_code"],
        slug=raw.get("slug"),
        title=raw.get("title"),
        body=raw.get("body"),
    )


def merge_news_translation(base: RawItem, translation: NewsTranslation) -> NewsEntry:
    """Merge a raw news item with one of its translations."""
    return NewsEntry(
        id=base.get("id"),
        languages_code=translation.languages_code,
        slug=translation.slug,
        title=translation.title,
        body=translation.body,
        main_image=normalize_image(base.get("main_image")),
        categories=[normalize_category(category) for category in base.get("categories") or [] if category],
        date_created=base.get("date_created"),
        date_updated=base.get("date_updated"),
    )


def flatten_news(raw: RawItem, locales: LocaleContext) -> "Match[NewsEntry]":
    """Flatten a news item to the requested locale, falling back to the default one."""
    if not raw.get("translations"):
        return NotFound("News has no translations")

    for language_code in locales.candidates:
        match = find_translation(raw["translations"], language_code)
        if isinstance(match, Found):
            return Found(merge_news_translation(raw, parse_news_translation(match.value)))
        logger.warning("News entry not available in locale", news_id=raw.get("id"), locale=language_code)

    return NotFound(f"News entry {raw.get('id')} not available in {', '.join(locales.candidates)}")


def normalize_venue(raw: RawItem) -> Optional[Venue]:
    """Prefer the venue relation, then the free text venue, then nothing."""
    venue = raw.get("venue")
    if venue:
        return Venue(
            name=venue.get("name"),
            address=venue.get("address"),
            url=venue.get("url"),
            id=venue.get("id"),
        )
    if raw.get("venue_other"):
        return Venue(name=raw["venue_other"])
    return None


def normalize_event(raw: Optional[RawItem]) -> Optional[CalendarEvent]:
    """Combine the date and time fields of an event.

    Returns None for events without a name or a start date.
    """
    if not raw or not raw.get("name") or not raw.get("date_start"):
        return None

    is_full_day = True
    show_end_time = False

    date_start = parse_date(raw["date_start"])
    if raw.get("time_start"):
        date_start = apply_time(date_start, raw["time_start"])
        is_full_day = False

    if raw.get("date_end"):
        date_end = parse_date(raw["date_end"])
    else:
        date_end = date_start

    if not is_full_day and raw.get("time_end"):
        date_end = apply_time(date_end, raw["time_end"])
        show_end_time = True

    return CalendarEvent(
        id=raw.get("id"),
        name=raw["name"],
        date_start=date_start,
        date_end=date_end,
        is_full_day=is_full_day,
        show_end_time=show_end_time,
        status=raw.get("status"),
        description=raw.get("description"),
        venue=normalize_venue(raw),
        image=normalize_image(raw.get("image")),
        url=raw.get("url"),
        category=raw.get("category"),
    )


def normalize_player(raw: RawItem) -> Player:
    positions = raw.get("positions") or []
    club = raw.get("club")
    return Player(
        id=raw.get("id"),
        first_name=raw.get("first_name") or "",
        last_name=raw.get("last_name") or "",
        number=raw.get("number"),
        is_captain=bool(raw.get("is_captain")),
        birth_year=raw.get("birth_year"),
        gender=raw.get("gender"),
        club=club.get("name") if isinstance(club, dict) else club,
        positions=[position.get("player_positions_id") if position else position for position in positions],
        date_start=raw.get("date_start"),
        date_end=raw.get("date_end"),
        track_record=raw.get("track_record"),
        portrait_square_head=raw.get("portrait_square_head"),
    )


def collation_key(value: Optional[str]) -> tuple:
    """Sort key comparing names without regard to accents or case first."""
    value = value or ""
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return (base.casefold(), value)


def player_sort_key(player: Player) -> tuple:
    # Captain first, then last name, then first name
    return (not player.is_captain, collation_key(player.last_name), collation_key(player.first_name))


def sort_players(players: List[Player]) -> List[Player]:
    return sorted(players, key=player_sort_key)


def normalize_team(raw: RawItem, locale: str, today: str) -> Team:
    """Build a team in ``locale`` with the players still in service on ``today``."""
    team = Team(
        name=raw.get("name") or DEFAULT_TEAM_NAME,
        slug=raw.get("slug") or DEFAULT_TEAM_SLUG,
        gender=raw.get("gender") or DEFAULT_TEAM_GENDER,
    )

    match = find_translation(raw.get("translations"), locale)
    if isinstance(match, Found):
        team.name = match.value.get("name") or team.name
        team.slug = match.value.get("slug") or team.slug

    players = [normalize_player(player) for player in raw.get("players") or [] if player]
    team.players = sort_players([player for player in players if player.is_active_on(today)])
    return team
