from __future__ import annotations

from typing import Dict, Generic, Iterable, Optional, Protocol, TypeVar


class Identified(Protocol):
    name: str
    player_id: Optional[str]


R = TypeVar("R", bound=Identified)


def name_key(name: Optional[str]) -> str:
    """Case/whitespace-insensitive name used as the secondary lookup key."""
    return " ".join(str(name or "").split()).casefold()


class PlayerIndex(Generic[R]):
    """
    Two-tier player lookup over rows that carry a name and an optional id.

    1) stable player id (primary key)
    2) case-insensitive name (secondary index)

    A name match is rejected when both sides carry ids and the ids differ:
    two different registered players may share a display name.
    """

    def __init__(self, rows: Iterable[R] = ()) -> None:
        self._by_id: Dict[str, R] = {}
        self._by_name: Dict[str, R] = {}
        for row in rows:
            self.add(row)

    def add(self, row: R) -> None:
        if row.player_id:
            self._by_id.setdefault(str(row.player_id), row)
        key = name_key(row.name)
        if key:
            self._by_name.setdefault(key, row)

    def find(self, name: Optional[str], player_id: Optional[str] = None) -> Optional[R]:
        if player_id:
            row = self._by_id.get(str(player_id))
            if row is not None:
                return row

        row = self._by_name.get(name_key(name))
        if row is None:
            return None
        if player_id and row.player_id and str(row.player_id) != str(player_id):
            return None

        if player_id and not row.player_id:
            # first sighting of the id for a name-only row
            row.player_id = str(player_id)
            self._by_id[str(player_id)] = row
        return row
