"""Selection editor - the user's working copy of the extracted cards."""

from dataclasses import replace
from typing import Iterator, List, Sequence, Tuple

from ..errors import InputError
from ..models import CardEntry


class SelectionEditor:
    """
    Mutable working copy of normalized entries.

    Entries are copied on construction and all start selected, so edits
    never leak back into the workflow state they were seeded from.
    """

    EMPTY_SELECTION_MESSAGE = "Please select at least one word."

    def __init__(self, entries: Sequence[CardEntry]):
        self._entries: List[CardEntry] = [replace(entry, selected=True) for entry in entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CardEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> CardEntry:
        return self._entries[index]

    def _entry(self, index: int) -> CardEntry:
        # Negative positions are rejected too
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No entry at position {index}")
        return self._entries[index]

    def toggle(self, index: int) -> bool:
        """Flip the selection of one entry and return its new state."""
        entry = self._entry(index)
        entry.selected = not entry.selected
        return entry.selected

    def select_all(self, selected: bool = True) -> None:
        for entry in self._entries:
            entry.selected = selected

    def edit(self, index: int, field: str, value: str) -> None:
        """
        Change one text field of an entry.

        Args:
            index: Position of the entry
            field: Field name valid for the entry kind
            value: New text

        Raises:
            IndexError: No entry at `index`
            ValueError: `field` cannot be edited on this kind of entry
        """
        entry = self._entry(index)
        if field not in entry.EDITABLE_FIELDS:
            raise ValueError(
                f"Cannot edit '{field}' on a {entry.kind.value} entry "
                f"(editable: {', '.join(sorted(entry.EDITABLE_FIELDS))})"
            )
        setattr(entry, field, value)

    @property
    def selected(self) -> Tuple[CardEntry, ...]:
        """Snapshot of the currently selected entries."""
        return tuple(replace(entry) for entry in self._entries if entry.selected)

    @property
    def selected_count(self) -> int:
        return sum(1 for entry in self._entries if entry.selected)

    def validate(self) -> Tuple[CardEntry, ...]:
        """
        Return the selection for submission.

        Raises:
            InputError: Nothing is selected
        """
        selected = self.selected
        if not selected:
            raise InputError(self.EMPTY_SELECTION_MESSAGE)
        return selected
