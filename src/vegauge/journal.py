"""Undo journal - reversible writes for one transaction.

Transactions:
  - begin / commit / rollback
  - while a transaction is open every write records how to reverse itself,
    so rolling back costs as much as the writes it undoes
  - outside a transaction writes are applied and nothing is recorded
"""

from functools import partial
from typing import Any, Callable, Hashable, List, MutableMapping, MutableSet, Optional

_MISSING = object()


class UndoJournal:
    """Records inverse operations for writes made inside a transaction."""

    def __init__(self):
        self._undo: Optional[List[Callable[[], None]]] = None

    @property
    def active(self) -> bool:
        return self._undo is not None

    def begin(self) -> None:
        if self._undo is not None:
            raise RuntimeError("transaction already open")
        self._undo = []

    def commit(self) -> None:
        self._undo = None

    def rollback(self) -> None:
        undo, self._undo = self._undo or [], None
        for step in reversed(undo):
            step()

    def set_item(self, mapping: MutableMapping, key: Hashable, value: Any) -> None:
        self._record(partial(_put_back, mapping, key, mapping.get(key, _MISSING)))
        mapping[key] = value

    def add_item(self, mapping: MutableMapping, key: Hashable, delta: int) -> None:
        self.set_item(mapping, key, mapping.get(key, 0) + delta)

    def pop_item(self, mapping: MutableMapping, key: Hashable) -> Any:
        old = mapping.get(key, _MISSING)
        if old is _MISSING:
            return None
        self._record(partial(_put_back, mapping, key, old))
        return mapping.pop(key)

    def set_attr(self, obj: Any, name: str, value: Any) -> None:
        self._record(partial(setattr, obj, name, getattr(obj, name)))
        setattr(obj, name, value)

    def add_attr(self, obj: Any, name: str, delta: int) -> None:
        self.set_attr(obj, name, getattr(obj, name) + delta)

    def append(self, items: List, value: Any) -> None:
        self._record(items.pop)
        items.append(value)

    def add_member(self, members: MutableSet, value: Hashable) -> None:
        if value not in members:
            self._record(partial(members.discard, value))
            members.add(value)

    def discard_member(self, members: MutableSet, value: Hashable) -> None:
        if value in members:
            self._record(partial(members.add, value))
            members.discard(value)

    def _record(self, step: Callable[[], None]) -> None:
        if self._undo is not None:
            self._undo.append(step)


def _put_back(mapping: MutableMapping, key: Hashable, old: Any) -> None:
    if old is _MISSING:
        mapping.pop(key, None)
    else:
        mapping[key] = old
