"""Directus filter expression builder.

Directus takes filters as nested JSON objects where relations are traversed by
nesting and the leaf holds an operator (``_eq``, ``_neq``, ``_gte``, ...)::

    {"_and": [{"status": {"_eq": "published"}},
              {"categories": {"id": {"_eq": 3}}}]}

``FilterExpression`` collects terms and combines them with a logical AND so
the query sent for each listing can be checked without any HTTP involved.
"""

from typing import Any, Dict, List

Term = Dict[str, Any]

OPERATORS = {"_eq", "_neq", "_gt", "_gte", "_lt", "_lte", "_null", "_nnull", "_in", "_nin"}


def condition(field_path: str, operator: str, value: Any) -> Term:
    """Build a single predicate from a dotted field path.

    >>> condition("categories.id", "_eq", 3)
    {'categories': {'id': {'_eq': 3}}}
    """
    if operator not in OPERATORS:
        raise ValueError(f"Unsupported filter operator: {operator}")
    if not field_path:
        raise ValueError("Filter field path cannot be empty")

    term: Term = {operator: value}
    for field in reversed(field_path.split(".")):
        term = {field: term}
    return term


def all_of(*terms: Term) -> Term:
    return {"_and": list(terms)}


def any_of(*terms: Term) -> Term:
    return {"_or": list(terms)}


class FilterExpression:
    """A list of predicate terms joined with ``_and``."""

    def __init__(self) -> None:
        self._terms: List[Term] = []

    def where(self, field_path: str, operator: str, value: Any) -> "FilterExpression":
        self._terms.append(condition(field_path, operator, value))
        return self

    def add(self, term: Term) -> "FilterExpression":
        self._terms.append(term)
        return self

    def add_if(self, enabled: Any, term: Term) -> "FilterExpression":
        """Add ``term`` only when ``enabled`` is truthy."""
        if enabled:
            self._terms.append(term)
        return self

    @property
    def terms(self) -> List[Term]:
        return list(self._terms)

    def is_empty(self) -> bool:
        return not self._terms

    def to_dict(self) -> Term:
        return all_of(*self._terms)

    def __repr__(self) -> str:
        return f"FilterExpression({self.to_dict()!r})"
