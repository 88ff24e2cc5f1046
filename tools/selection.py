"""Multi-select state and batch operations for the transaction table."""

from typing import Iterable, List, Optional

from logger import get_logger

logger = get_logger()


class Selection:
    """Ordered set of selected transaction IDs."""

    def __init__(self, ids: Iterable[int] = ()):
        self._ids = dict.fromkeys(ids)

    def __contains__(self, transaction_id) -> bool:
        return transaction_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[int]:
        return list(self._ids)

    def toggle(self, transaction_id: int) -> bool:
        """Select or unselect one row. Returns whether it is now selected."""
        if transaction_id in self._ids:
            del self._ids[transaction_id]
            return False
        self._ids[transaction_id] = None
        return True

    def select_all(self, transaction_ids: Iterable[int]) -> None:
        for transaction_id in transaction_ids:
            self._ids.setdefault(transaction_id, None)

    def clear(self) -> None:
        self._ids.clear()

    def delete_selected(self, services) -> int:
        """Delete every selected transaction with a single backend call.

        The selection is cleared afterwards.

        Returns:
            Number of rows deleted.
        """
        if not self._ids:
            return 0

        deleted = services.transactions.delete_many(self.ids)
        if deleted < len(self._ids):
            logger.warning(f"Deleted {deleted} of {len(self._ids)} selected transactions")
        self.clear()
        return deleted


class EditNavigator:
    """Step through a fixed list of transaction IDs for editing.

    The list is captured when editing starts; later selection changes do not
    affect it.
    """

    def __init__(self, ids: Iterable[int]):
        self.ids = list(ids)
        if not self.ids:
            raise ValueError("Nothing selected to edit")
        self.index = 0

    @property
    def current(self) -> int:
        return self.ids[self.index]

    @property
    def has_next(self) -> bool:
        return self.index < len(self.ids) - 1

    @property
    def has_previous(self) -> bool:
        return self.index > 0

    def next(self) -> Optional[int]:
        if not self.has_next:
            return None
        self.index += 1
        return self.current

    def previous(self) -> Optional[int]:
        if not self.has_previous:
            return None
        self.index -= 1
        return self.current

    @property
    def position(self) -> str:
        return f"{self.index + 1} of {len(self.ids)}"
