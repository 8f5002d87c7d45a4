"""Identity cache assigning slots to reference-type values."""

from typing import Any, Dict, Optional, Tuple


class IdentityCache:
    """
    Maps values, by identity, to slot numbers in the emitted program.

    A value gets its slot the first time encoding begins on it, before its
    contents are visited, so a value reachable from itself resolves to a
    back-reference instead of infinite recursion. Entries hold a reference
    to the value so ``id()`` cannot be recycled while the cache lives.
    """

    def __init__(self) -> None:
        self._slots: Dict[int, Tuple[int, Any]] = {}
        self.size = 0

    def lookup(self, value: Any) -> Optional[int]:
        """Return the slot of ``value`` or None if it has none yet."""
        entry = self._slots.get(id(value))
        if entry is None:
            return None
        return entry[0]

    def get_or_assign(self, value: Any) -> Tuple[int, bool]:
        """
        Get the slot of ``value``, assigning a new one on first sight.

        Args:
            value: Any reference-type value

        Returns:
            Tuple of (slot, already_seen)
        """
        entry = self._slots.get(id(value))
        if entry is not None:
            return entry[0], True

        self.size += 1
        self._slots[id(value)] = (self.size, value)
        return self.size, False

    def __contains__(self, value: Any) -> bool:
        return id(value) in self._slots

    def __len__(self) -> int:
        return self.size
