"""JSON:API documents returned by Leverade."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LeveradeResponse:
    """A decoded Leverade response.

    ``data`` is a resource object or a list of them, ``included`` holds the
    related resources requested with ``include=``.
    """

    status_code: int
    data: Any
    included: List[Dict[str, Any]] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)
    links: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, status_code: int, document: Dict[str, Any]) -> "LeveradeResponse":
        return cls(
            status_code=status_code,
            data=document["data"],
            included=document.get("included") or [],
            meta=document.get("meta") or {},
            links=document.get("links") or {},
        )

    def included_by_type(self, resource_type: str) -> List[Dict[str, Any]]:
        """All included resources of one type (``match``, ``team``, ...)."""
        return [resource for resource in self.included if resource.get("type") == resource_type]

    def find_included(self, resource_type: str, resource_id: Any) -> Optional[Dict[str, Any]]:
        """Resolve a relationship identifier to its included resource."""
        resource_id = str(resource_id)
        for resource in self.included:
            if resource.get("type") == resource_type and str(resource.get("id")) == resource_id:
                return resource
        return None
