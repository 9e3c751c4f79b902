"""
Tests for the type-indexed extension map.
"""

from dataclasses import dataclass

from core.extensions import Extensions
from core.models import Body, SenderId


@dataclass
class Counter:
    value: int = 0


class TestInsertAndGet:
    """insert() / get() semantics."""

    def test_empty_map(self):
        ext = Extensions()
        assert ext.is_empty()
        assert len(ext) == 0
        assert ext.get(int) is None

    def test_get_returns_inserted_value(self):
        ext = Extensions()
        assert ext.insert(5) is None
        assert ext.get(int) == 5
        assert len(ext) == 1

    def test_insert_returns_previous_and_keeps_one(self):
        ext = Extensions()
        ext.insert(5)
        assert ext.insert(9) == 5
        assert ext.get(int) == 9
        assert len(ext) == 1

    def test_distinct_types_are_distinct_keys(self):
        ext = Extensions()
        ext.insert(5)
        ext.insert(4.0)
        ext.insert("text")
        assert len(ext) == 3
        assert ext.get(float) == 4.0
        assert ext.get(str) == "text"

    def test_subclass_is_not_returned_for_base(self):
        """A str subclass never satisfies a lookup for str, and vice versa."""
        ext = Extensions()
        ext.insert(Body("!hello"))
        assert ext.get(str) is None
        assert ext.get(SenderId) is None
        assert ext.get(Body) == "!hello"
        assert type(ext.get(Body)) is Body

    def test_bool_is_not_an_int(self):
        ext = Extensions()
        ext.insert(True)
        assert ext.get(int) is None
        assert ext.get(bool) is True

    def test_contains(self):
        ext = Extensions()
        ext.insert(Counter())
        assert Counter in ext
        assert int not in ext


class TestMutationAndRemoval:
    """get_mut(), remove() and clear()."""

    def test_get_mut_changes_stored_value(self):
        ext = Extensions()
        ext.insert(Counter())
        ext.get_mut(Counter).value += 3
        assert ext.get(Counter).value == 3

    def test_remove_returns_value_and_forgets_it(self):
        ext = Extensions()
        ext.insert(5)
        assert ext.remove(int) == 5
        assert ext.get(int) is None
        assert ext.is_empty()

    def test_remove_missing_returns_none(self):
        ext = Extensions()
        assert ext.remove(int) is None

    def test_clear(self):
        ext = Extensions()
        ext.insert(5)
        ext.insert("x")
        ext.clear()
        assert ext.is_empty()
        assert ext.get(int) is None

    def test_maps_do_not_share_state(self):
        first = Extensions()
        second = Extensions()
        first.insert(1)
        assert second.get(int) is None
