"""Parsed query string."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Query string parameters, first value per key.

    Mapping access sees the first value sent for a key; ``get_list``
    returns them all. Equality compares the decoded pairs, so two
    contexts built from the same query compare equal.
    """

    __slots__ = ("_pairs", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        self._pairs: tuple[tuple[str, str], ...] = tuple(
            parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
        )

    def __getitem__(self, key: str) -> str:
        for name, value in self._pairs:
            if name == key:
                return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._pairs))

    def __len__(self) -> int:
        return len({name for name, _ in self._pairs})

    def __eq__(self, other: object) -> bool:
        if isinstance(other, QueryParams):
            return self._pairs == other._pairs
        return super().__eq__(other)

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw.decode('latin-1')!r})"

    @property
    def raw(self) -> bytes:
        """The query string as received."""
        return self._raw

    def get_list(self, key: str) -> list[str]:
        """All values for *key*, in order."""
        return [value for name, value in self._pairs if name == key]

    def first_values(self) -> dict[str, str]:
        """Plain ``dict`` of first values; what client components receive."""
        return {name: self[name] for name in self}
