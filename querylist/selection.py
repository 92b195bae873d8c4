"""Selection of visible records for bulk actions."""

from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable


class SelectionSet:
    """
    Ids of currently displayed records chosen for a bulk action.

    Only ids reported by `visible_ids` can be selected, and "select all" means
    all visible records, never the server-side total.
    """

    def __init__(self, visible_ids: Callable[[], list[Hashable]]):
        self._visible_ids = visible_ids
        self._selected: set[Hashable] = set()

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, record_id: Any) -> bool:
        return record_id in self._selected

    def __bool__(self) -> bool:
        return bool(self._selected)

    def is_selected(self, record_id: Hashable) -> bool:
        return record_id in self._selected

    def select(self, record_id: Hashable) -> bool:
        """Add a visible id. Returns False if the id is not on screen."""
        if record_id not in set(self._visible_ids()):
            return False
        self._selected.add(record_id)
        return True

    def deselect(self, record_id: Hashable) -> bool:
        """Remove an id. Returns True if it was selected."""
        if record_id in self._selected:
            self._selected.discard(record_id)
            return True
        return False

    def toggle(self, record_id: Hashable) -> bool:
        """Flip one id; returns the new selected state."""
        if record_id in self._selected:
            self._selected.discard(record_id)
            return False
        return self.select(record_id)

    def select_all(self) -> int:
        """Select exactly the visible records. Returns how many are selected."""
        self._selected = set(self._visible_ids())
        return len(self._selected)

    def all_selected(self) -> bool:
        visible = self._visible_ids()
        return bool(visible) and self._selected.issuperset(visible)

    def toggle_all(self) -> int:
        """Header checkbox: clear when everything is selected, otherwise select all."""
        if self.all_selected():
            self.clear()
            return 0
        return self.select_all()

    def retain(self, ids: Iterable[Hashable]) -> None:
        """Drop every selected id not in `ids`."""
        self._selected.intersection_update(ids)

    def clear(self) -> None:
        self._selected.clear()

    def snapshot(self) -> list[Hashable]:
        """Selected ids in display order."""
        return [i for i in self._visible_ids() if i in self._selected]
