"""
Metadata — ordered, multi-valued string map attached to every document.

Keys keep insertion order.  Each key maps to a list of strings; non-string
values are converted with str() and None values are ignored.  When created
with ``case_sensitive=False``, keys are matched regardless of case and keep
the spelling they were first added with.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any


def _to_strings(values: Iterable[Any]) -> list[str]:
    result = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, (list, tuple, set)):
            result.extend(_to_strings(value))
        else:
            result.append(value if isinstance(value, str) else str(value))
    return result


class Metadata(MutableMapping[str, list[str]]):
    """Multi-valued metadata fields."""

    def __init__(
        self,
        initial: Mapping[str, Any] | None = None,
        *,
        case_sensitive: bool = True,
    ) -> None:
        self.case_sensitive = case_sensitive
        self._data: dict[str, list[str]] = {}
        # lower-cased key → stored key, only used when case-insensitive
        self._keys: dict[str, str] = {}
        if initial:
            self.load(initial)

    # ─── Key handling ──────────────────────────────────

    def _stored_key(self, key: str) -> str | None:
        if self.case_sensitive:
            return key if key in self._data else None
        return self._keys.get(key.lower())

    def _register(self, key: str) -> str:
        stored = self._stored_key(key)
        if stored is not None:
            return stored
        self._data[key] = []
        if not self.case_sensitive:
            self._keys[key.lower()] = key
        return key

    # ─── Mapping protocol ──────────────────────────────

    def __getitem__(self, key: str) -> list[str]:
        stored = self._stored_key(key)
        if stored is None:
            raise KeyError(key)
        return self._data[stored]

    def __setitem__(self, key: str, values: Any) -> None:
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            values = [values]
        self.set(key, *values)

    def __delitem__(self, key: str) -> None:
        stored = self._stored_key(key)
        if stored is None:
            raise KeyError(key)
        del self._data[stored]
        if not self.case_sensitive:
            del self._keys[stored.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._stored_key(key) is not None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Metadata):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Metadata({self._data!r})"

    # ─── Multi-value helpers ───────────────────────────

    def add(self, key: str, *values: Any) -> None:
        """Append values to a field, creating it if needed."""
        strings = _to_strings(values)
        stored = self._register(key)
        self._data[stored].extend(strings)

    def set(self, key: str, *values: Any) -> None:
        """Replace all values of a field.  No values removes the field."""
        strings = _to_strings(values)
        if not strings:
            self.remove(key)
            return
        stored = self._register(key)
        self._data[stored] = strings

    def get(self, key: str, default: Any = None) -> Any:  # type: ignore[override]
        """First value of a field, or *default*."""
        values = self.get_strings(key)
        return values[0] if values else default

    def get_strings(self, key: str) -> list[str]:
        """All values of a field (a copy), empty if absent."""
        stored = self._stored_key(key)
        return list(self._data[stored]) if stored is not None else []

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    def remove(self, key: str) -> list[str]:
        """Remove a field, returning its former values."""
        stored = self._stored_key(key)
        if stored is None:
            return []
        values = self._data[stored]
        del self[stored]
        return values

    def load(self, mapping: Mapping[str, Any]) -> None:
        """Add every field of *mapping* to this metadata."""
        for key, values in mapping.items():
            if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
                values = [values]
            self.add(key, *values)

    def copy(self) -> Metadata:
        clone = Metadata(case_sensitive=self.case_sensitive)
        for key, values in self._data.items():
            clone.add(key, *values)
        return clone

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._data.items()}
