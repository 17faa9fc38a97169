"""Request headers as a read-only, case-insensitive mapping."""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Request headers keyed by lower-cased name.

    Built once from the ASGI ``(name, value)`` byte pairs. Lookups are
    case-insensitive and return the first value sent; repeated headers
    stay reachable through ``get_list``.
    """

    __slots__ = ("_values",)

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        values: dict[str, list[str]] = {}
        for name, value in raw:
            values.setdefault(name.decode("latin-1").lower(), []).append(
                value.decode("latin-1")
            )
        self._values = values

    @classmethod
    def from_pairs(cls, pairs: Mapping[str, str]) -> Headers:
        """Headers from ``str`` pairs, for synthetic requests in tests."""
        return cls((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs.items())

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        first = {name: values[0] for name, values in self._values.items()}
        return f"Headers({first!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in arrival order."""
        return list(self._values.get(key.lower(), ()))
