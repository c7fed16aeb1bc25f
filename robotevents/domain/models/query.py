"""Query parameters for collection endpoints.

A Query is an ordered set of parameters rendered as a query string. The
bulk collector derives one Query per page through ``with_page`` so the
caller's query is never modified.
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

QueryValue = Union[str, int, bool, List[Union[str, int, bool]], Tuple[Union[str, int, bool], ...]]

PAGE_PARAM = "page"
PER_PAGE_PARAM = "per_page"


def _render(value: Union[str, int, bool]) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Query:
    """Immutable-by-convention set of query parameters.

    List values are sent as repeated ``key[]=value`` pairs, the convention the
    API uses for multi-valued filters (``id[]``, ``season[]``, ...).
    """

    def __init__(self, params: Optional[Mapping[str, QueryValue]] = None):
        self._params: Dict[str, QueryValue] = dict(params or {})

    # --- Builders ---

    def with_param(self, key: str, value: QueryValue) -> "Query":
        params = dict(self._params)
        params[key] = value
        return Query(params)

    def with_page(self, page: int) -> "Query":
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        return self.with_param(PAGE_PARAM, page)

    def with_per_page(self, per_page: int) -> "Query":
        if per_page < 1:
            raise ValueError(f"per_page must be >= 1, got {per_page}")
        return self.with_param(PER_PAGE_PARAM, per_page)

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> "Query":
        """Parses ``key=value`` strings, e.g. from the command line.

        Repeating a key, or writing it as ``key[]``, makes it a list parameter.
        """
        params: Dict[str, Any] = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            key = key.strip()
            if not sep or not key:
                raise ValueError(f"Invalid query parameter '{pair}', expected key=value")
            is_list = key.endswith("[]")
            key = key[:-2] if is_list else key
            if key in params:
                existing = params[key]
                params[key] = (existing if isinstance(existing, list) else [existing]) + [value]
            else:
                params[key] = [value] if is_list else value
        return cls(params)

    # --- Accessors ---

    def get(self, key: str, default: Any = None) -> Any:
        return self._params.get(key, default)

    @property
    def page(self) -> Optional[int]:
        value = self._params.get(PAGE_PARAM)
        return int(value) if value is not None else None

    def items(self) -> Iterator[Tuple[str, str]]:
        """Yields the (key, value) pairs as they appear on the wire."""
        for key, value in self._params.items():
            if isinstance(value, (list, tuple)):
                for member in value:
                    yield f"{key}[]", _render(member)
            else:
                yield key, _render(value)

    def to_query_string(self) -> str:
        pairs = [f"{quote(key, safe='')}={quote(value, safe='')}" for key, value in self.items()]
        return "?" + "&".join(pairs) if pairs else ""

    def __str__(self) -> str:
        return self.to_query_string()

    def __repr__(self) -> str:
        return f"Query({self._params!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Query):
            return NotImplemented
        return self._params == other._params

    def __len__(self) -> int:
        return len(self._params)
