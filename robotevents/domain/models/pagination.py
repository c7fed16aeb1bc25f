"""Domain models for paginated responses.

Every collection endpoint answers with the same envelope::

    {"meta": {"current_page": 1, "last_page": 3, "per_page": 50, "total": 120, ...},
     "data": [...]}

The client never looks inside the items; it only needs the metadata to know
how many pages exist and the item list to preserve their order.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

from robotevents.domain.exceptions import DecodeFailure
from robotevents.domain.models.common import PageNumber, RawItem

T = TypeVar("T")

_REQUIRED_INT_FIELDS = ("current_page", "last_page", "per_page", "total")


@dataclass(frozen=True)
class PageMeta:
    """Metadata block of a paginated response."""
    current_page: int
    last_page: int
    per_page: int
    total: int
    from_item: Optional[int] = None
    to_item: Optional[int] = None
    path: Optional[str] = None
    first_page_url: Optional[str] = None
    last_page_url: Optional[str] = None
    prev_page_url: Optional[str] = None
    next_page_url: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "PageMeta":
        """Builds a PageMeta from the decoded ``meta`` object.

        Raises:
            DecodeFailure: If a required field is missing or has the wrong type,
                or if the values break the basic bounds (pages start at 1,
                current_page does not pass last_page, per_page is positive,
                total is non-negative).
        """
        if not isinstance(raw, Mapping):
            raise DecodeFailure(f"'meta' must be an object, got {type(raw).__name__}")

        values: Dict[str, int] = {}
        for name in _REQUIRED_INT_FIELDS:
            value = raw.get(name)
            # bool is an int subclass; reject it explicitly
            if not isinstance(value, int) or isinstance(value, bool):
                raise DecodeFailure(f"'meta.{name}' must be an integer, got {value!r}")
            values[name] = value

        if values["current_page"] < 1 or values["last_page"] < 1:
            raise DecodeFailure(
                f"page numbers start at 1 (current_page={values['current_page']}, "
                f"last_page={values['last_page']})"
            )
        if values["current_page"] > values["last_page"]:
            raise DecodeFailure(
                f"current_page {values['current_page']} is past last_page {values['last_page']}"
            )
        if values["per_page"] <= 0:
            raise DecodeFailure(f"'meta.per_page' must be positive, got {values['per_page']}")
        if values["total"] < 0:
            raise DecodeFailure(f"'meta.total' must be non-negative, got {values['total']}")

        return cls(
            from_item=_optional(raw, "from", int),
            to_item=_optional(raw, "to", int),
            path=_optional(raw, "path", str),
            first_page_url=_optional(raw, "first_page_url", str),
            last_page_url=_optional(raw, "last_page_url", str),
            prev_page_url=_optional(raw, "prev_page_url", str),
            next_page_url=_optional(raw, "next_page_url", str),
            **values,
        )

    def expected_last_page(self) -> int:
        """The page count implied by ``total`` and ``per_page``."""
        if self.total == 0:
            return 1
        return math.ceil(self.total / self.per_page)

    def is_consistent(self) -> bool:
        return self.last_page == self.expected_last_page()

    @property
    def has_next(self) -> bool:
        return self.current_page < self.last_page


def _optional(raw: Mapping[str, Any], key: str, kind: type) -> Any:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, kind) or isinstance(value, bool):
        raise DecodeFailure(f"'meta.{key}' must be {kind.__name__} or null, got {value!r}")
    return value


@dataclass
class Page(Generic[T]):
    """One page of a collection: metadata plus items in server order."""
    meta: PageMeta
    items: List[T] = field(default_factory=list)

    @property
    def number(self) -> PageNumber:
        return PageNumber(self.meta.current_page)

    def __len__(self) -> int:
        return len(self.items)


def parse_envelope(
    payload: Any,
    item_parser: Optional[Callable[[RawItem], T]] = None,
) -> Page[T]:
    """Turns a decoded JSON body into a Page.

    Args:
        payload: The decoded JSON document.
        item_parser: Optional callable applied to every raw item. Exceptions it
            raises are reported as decode failures.

    Returns:
        The Page with its items in the order the server sent them.

    Raises:
        DecodeFailure: If the envelope does not have the expected shape.
    """
    if not isinstance(payload, Mapping):
        raise DecodeFailure(f"expected a JSON object, got {type(payload).__name__}")
    if "meta" not in payload:
        raise DecodeFailure("missing 'meta' object")
    meta = PageMeta.from_dict(payload["meta"])

    data = payload.get("data")
    if not isinstance(data, list):
        raise DecodeFailure(f"'data' must be a list, got {type(data).__name__}")

    if item_parser is None:
        return Page(meta=meta, items=list(data))

    try:
        items = [item_parser(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeFailure(f"item parser rejected a record: {e}") from e
    return Page(meta=meta, items=items)
