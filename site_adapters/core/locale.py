"""Locale resolution helpers.

Picking a translation is an ordered search over locale candidates. A miss is
an expected outcome (the entry is simply not translated yet), so it is
reported as a ``NotFound`` value rather than an exception.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    """A successful lookup."""

    value: T


@dataclass(frozen=True)
class NotFound:
    """A lookup that matched nothing."""

    reason: str = ""


Match = Union[Found[T], NotFound]


def first_match(candidates: Optional[Iterable[T]], predicate: Callable[[T], bool]) -> "Match[T]":
    """Return the first candidate accepted by ``predicate``."""
    if candidates is None:
        return NotFound("No candidates")
    for candidate in candidates:
        if predicate(candidate):
            return Found(candidate)
    return NotFound("No candidate matched")


def locale_candidates(current: str, default: Optional[str]) -> list[str]:
    """Ordered locales to try: the requested one, then the fallback."""
    candidates = [current]
    if default and default != current:
        candidates.append(default)
    return candidates


@dataclass(frozen=True)
class LocaleContext:
    """Locales of the request being served."""

    locale: str
    default_locale: str

    @property
    def candidates(self) -> list[str]:
        return locale_candidates(self.locale, self.default_locale)
