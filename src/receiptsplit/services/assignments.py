from __future__ import annotations

from typing import Iterable, Mapping


class UnknownItemError(KeyError):
    pass


class Assignments:
    """Which participants share the cost of which item.

    An empty set is meaningful: the item is communal and is split among
    everyone on the bill.
    """

    def __init__(self, item_ids: Iterable[str] = ()) -> None:
        self._sets: dict[str, set[str]] = {item_id: set() for item_id in item_ids}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._sets

    def register(self, item_id: str) -> None:
        self._sets.setdefault(item_id, set())

    def discard(self, item_id: str) -> None:
        self._sets.pop(item_id, None)

    def toggle(self, item_id: str, participant: str) -> bool:
        """Flip ``participant`` on ``item_id``; returns True if now assigned."""
        members = self._require(item_id)
        if participant in members:
            members.remove(participant)
            return False
        members.add(participant)
        return True

    def unassign_all(self, item_id: str) -> None:
        self._require(item_id).clear()

    def participants_for(self, item_id: str) -> frozenset[str]:
        return frozenset(self._require(item_id))

    def drop_participant(self, participant: str) -> None:
        for members in self._sets.values():
            members.discard(participant)

    def as_mapping(self) -> Mapping[str, frozenset[str]]:
        return {item_id: frozenset(members) for item_id, members in self._sets.items()}

    def _require(self, item_id: str) -> set[str]:
        try:
            return self._sets[item_id]
        except KeyError:
            raise UnknownItemError(item_id) from None
