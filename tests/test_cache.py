"""
Tests for the identity cache.
"""

from graphdump.core.cache import IdentityCache


class TestIdentityCache:
    """Tests for IdentityCache class."""

    def test_slots_are_assigned_in_order(self):
        """Test that slots count up from 1."""
        cache = IdentityCache()
        first, second = [], {}

        assert cache.get_or_assign(first) == (1, False)
        assert cache.get_or_assign(second) == (2, False)
        assert len(cache) == 2

    def test_second_sight_returns_same_slot(self):
        """Test that a value keeps its slot."""
        cache = IdentityCache()
        value = [1, 2]

        slot, _ = cache.get_or_assign(value)
        assert cache.get_or_assign(value) == (slot, True)
        assert cache.lookup(value) == slot

    def test_lookup_unseen_value(self):
        """Test lookup of a value without a slot."""
        cache = IdentityCache()

        assert cache.lookup([]) is None
        assert len(cache) == 0

    def test_equal_values_get_distinct_slots(self):
        """Test that the cache goes by identity, not equality."""
        cache = IdentityCache()
        a, b = [1], [1]

        slot_a, _ = cache.get_or_assign(a)
        slot_b, _ = cache.get_or_assign(b)

        assert slot_a != slot_b
        assert a in cache
        assert b in cache
        assert [1] not in cache

    def test_values_are_kept_alive(self):
        """Test that temporary values cannot recycle an id while cached."""
        cache = IdentityCache()
        for _ in range(100):
            cache.get_or_assign(object())

        assert len(cache) == 100
        assert len({slot for slot, _ in cache._slots.values()}) == 100
