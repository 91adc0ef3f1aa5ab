"""Case-insensitive, multi-value header mapping."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import httpx

from .misc import HEADER_TOKEN


@lru_cache(maxsize=512)
def canonical_key(key: str) -> str:
    """
    MIME-style canonical form of a header key: ``content-type`` becomes
    ``Content-Type``. Keys with bytes that are not valid in a header name are
    returned unchanged.
    """
    if not HEADER_TOKEN.match(key):
        return key

    out = []
    upper = True
    for char in key:
        if upper and "a" <= char <= "z":
            char = char.upper()
        elif not upper and "A" <= char <= "Z":
            char = char.lower()
        out.append(char)
        upper = char == "-"
    return "".join(out)


class Head:
    """
    HTTP header store tolerating both canonical and non-canonical keys.

    Keys are stored as given and canonicalized only when a mutation touches
    them. Lookups check the exact key first, then its canonical form. Every
    mutator returns the receiver for chaining.

    A ``dict`` passed to the constructor is wrapped, not copied, so mutations
    are visible through the original dict.
    """

    __slots__ = ("_data",)

    def __init__(self, raw: Optional[Mapping[str, Any]] = None) -> None:
        if raw is None:
            self._data: Dict[str, Optional[List[str]]] = {}
        elif isinstance(raw, Head):
            self._data = raw._data
        elif isinstance(raw, dict):
            self._data = raw
        else:
            self._data = {key: _as_list(vals) for key, vals in raw.items()}

    # Reads -----------------------------------------------------------------

    def get(self, key: str) -> str:
        """First value for the key, or "" when absent or empty."""
        if key in self._data:
            vals = self._data[key]
        else:
            vals = self._data.get(canonical_key(key))
        return vals[0] if vals else ""

    def values(self, key: str) -> Optional[List[str]]:
        """All values for the key; ``None`` when absent, ``[]`` when present but empty."""
        if key in self._data:
            return self._data[key]
        return self._data.get(canonical_key(key))

    def has(self, key: str) -> bool:
        """True if either the exact key or its canonical form is stored."""
        if not self._data:
            return False
        return key in self._data or canonical_key(key) in self._data

    # Mutations -------------------------------------------------------------

    def delete(self, key: str) -> "Head":
        """Remove both the exact key and its canonical form."""
        if self._data:
            self._data.pop(key, None)
            self._data.pop(canonical_key(key), None)
        return self

    def add(self, key: str, value: str) -> "Head":
        """
        Append a value under the canonical key.

        An entry stored under the exact non-canonical key is folded in and
        removed. Resulting order: previous canonical values, previous
        exact-key values, then the new value.
        """
        canon = canonical_key(key)
        merged = list(self._data.get(canon) or ())
        if key != canon:
            merged.extend(self._data.pop(key, None) or ())
        merged.append(value)
        self._data[canon] = merged
        return self

    def set(self, key: str, value: str) -> "Head":
        """Store exactly one value under the canonical key, dropping the exact key."""
        canon = canonical_key(key)
        if key != canon:
            self._data.pop(key, None)
        self._data[canon] = [value]
        return self

    def replace(self, key: str, *values: str) -> "Head":
        """Like :meth:`set` for several values; with no values, same as :meth:`delete`."""
        return self._replace(key, list(values))

    def patch(self, head: Optional[Mapping[str, Sequence[str]]]) -> "Head":
        """Apply :meth:`replace` for every entry, in the input's order."""
        if head:
            for key, vals in head.items():
                self._replace(key, vals if isinstance(vals, list) else _as_list(vals))
        return self

    def _replace(self, key: str, values: List[str]) -> "Head":
        if not values:
            return self.delete(key)

        canon = canonical_key(key)
        if key != canon:
            self._data.pop(key, None)
        self._data[canon] = values
        return self

    # Conversions -----------------------------------------------------------

    def header(self) -> Dict[str, Optional[List[str]]]:
        """The underlying dict, without copying."""
        return self._data

    def clone(self) -> "Head":
        """Deep copy: neither the dict nor the value lists are shared."""
        return Head({key: None if vals is None else list(vals) for key, vals in self._data.items()})

    def multi_items(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, vals in self._data.items() for value in vals or ()]

    def to_httpx(self) -> httpx.Headers:
        return httpx.Headers(self.multi_items())

    @classmethod
    def from_httpx(cls, headers: httpx.Headers) -> "Head":
        """Build a canonicalized header from httpx headers, preserving value order."""
        head = cls()
        for key, value in headers.raw:
            head.add(key.decode(headers.encoding), value.decode(headers.encoding))
        return head

    # Mapping protocol ------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, key: str) -> Optional[List[str]]:
        if not self.has(key):
            raise KeyError(key)
        return self.values(key)

    def items(self) -> Iterable[Tuple[str, Optional[List[str]]]]:
        return self._data.items()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Head):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Head({self._data!r})"


def _as_list(vals: Any) -> Optional[List[str]]:
    if vals is None:
        return None
    if isinstance(vals, str):
        return [vals]
    return list(vals)
