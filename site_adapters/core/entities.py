"""Display entities produced by the adapters."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass
class Image:
    """A CMS file reference."""

    id: str
    description: Optional[str] = None


@dataclass
class NewsCategory:
    """A news category resolved to the requested locale.

    ``slug`` and ``name`` stay empty when the category has no translation in
    that locale.
    """

    id: int
    slug: Optional[str] = None
    name: Optional[str] = None


@dataclass
class NewsTranslation:
    """Language specific fields of a news entry."""

    languages_code: str
    slug: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None


@dataclass
class NewsEntry:
    """A news entry flattened to a single locale."""

    id: Union[int, str]
    languages_code: str
    slug: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    main_image: Optional[Image] = None
    categories: List[NewsCategory] = field(default_factory=list)
    date_created: Optional[str] = None
    date_updated: Optional[str] = None


@dataclass
class Venue:
    """Where an event takes place."""

    name: str
    address: Optional[str] = None
    url: Optional[str] = None
    id: Optional[int] = None


@dataclass
class CalendarEvent:
    """An event with its date and optional times combined into instants."""

    id: Union[int, str]
    name: str
    date_start: datetime
    date_end: datetime
    is_full_day: bool
    show_end_time: bool
    status: Optional[str] = None
    description: Optional[str] = None
    venue: Optional[Venue] = None
    image: Optional[Image] = None
    url: Optional[str] = None
    category: Optional[int] = None


@dataclass
class Player:
    """A national team player."""

    id: Union[int, str]
    first_name: str = ""
    last_name: str = ""
    number: Optional[int] = None
    is_captain: bool = False
    birth_year: Optional[int] = None
    gender: Optional[str] = None
    club: Optional[str] = None
    positions: List[Any] = field(default_factory=list)
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    track_record: Optional[str] = None
    portrait_square_head: Optional[Any] = None

    def is_active_on(self, day: str) -> bool:
        """Check the player is still in service on ``day`` (``yyyy-MM-dd``)."""
        return not self.date_end or self.date_end >= day


@dataclass
class Team:
    """A national team with its current roster."""

    name: str
    slug: str
    gender: str
    players: List[Player] = field(default_factory=list)


@dataclass
class ListMeta:
    """Pagination metadata of a listing."""

    total: int = 0
    filtered_category_name: Optional[str] = None


@dataclass
class ListResult(Generic[T]):
    """A page of entities with its metadata."""

    data: List[T]
    meta: ListMeta = field(default_factory=ListMeta)
