"""Type-indexed storage for per-message values.

An Extensions map holds at most one value per exact type. The transport
adapter fills it before dispatch (body, sender, room, ...) and extractors
read from it when a command handler is invoked.
"""
from typing import Any, Dict, Optional, Type, TypeVar

T = TypeVar("T")


class Extensions:
    """A map from a value's type to that value.

    Keys are exact types: a subclass is a different key than its base, so a
    lookup never hands back a value of a type other than the one requested.

    Example:
        >>> ext = Extensions()
        >>> ext.insert(5) is None
        True
        >>> ext.insert(9)
        5
        >>> ext.get(int)
        9
    """

    def __init__(self) -> None:
        self._map: Dict[type, Any] = {}

    def insert(self, value: T) -> Optional[T]:
        """Store ``value`` keyed by its own type.

        Returns:
            The previously stored value of the same type, if any
        """
        key = type(value)
        previous = self._map.get(key)
        self._map[key] = value
        return previous

    def get(self, cls: Type[T]) -> Optional[T]:
        """Return the stored value of type ``cls`` or None."""
        value = self._map.get(cls)
        if value is None or type(value) is not cls:
            return None
        return value

    def get_mut(self, cls: Type[T]) -> Optional[T]:
        """Return the live stored value of type ``cls`` for in-place changes.

        Mutating the returned object changes what later lookups see.
        """
        return self.get(cls)

    def remove(self, cls: Type[T]) -> Optional[T]:
        """Remove and return the value of type ``cls``, or None."""
        if cls not in self._map:
            return None
        return self._map.pop(cls)

    def clear(self) -> None:
        self._map.clear()

    def is_empty(self) -> bool:
        return not self._map

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, cls: object) -> bool:
        return cls in self._map

    def __repr__(self) -> str:
        names = ", ".join(sorted(t.__name__ for t in self._map))
        return f"Extensions({names})"
