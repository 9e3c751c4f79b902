"""Extractors: how handler parameters are built from a message.

A command handler declares what it needs through its parameter annotations.
Each annotation resolves to an Extractor, which builds the argument from the
message's Extensions or raises a Rejection:

- ``Extension[T]`` wraps a copy of the stored value of type ``T``
- a plain class ``T`` yields a copy of the stored value of type ``T``
- a ``FromMessage`` subclass builds itself with ``from_message``
- ``Parts`` takes ownership of the whole map (at most once per handler, and
  only as the last parameter)
"""
import copy
import functools
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, Type, TypeVar, get_args, get_origin

from core.errors import ExtensionsAlreadyExtracted, MissingExtension
from core.extensions import Extensions
from core.models import Body, SenderId

T = TypeVar("T")


@dataclass
class Message:
    """Transport-agnostic envelope for one incoming message.

    The transport adapter places the body, the sender and any other context
    into ``extensions`` before the message is dispatched.
    """
    extensions: Extensions = field(default_factory=Extensions)

    @property
    def body(self) -> Optional[Body]:
        return self.extensions.get(Body)

    @property
    def sender(self) -> Optional[SenderId]:
        return self.extensions.get(SenderId)


class MessageParts:
    """The view of a Message that extractors work on."""

    def __init__(self, extensions: Extensions) -> None:
        self._extensions: Optional[Extensions] = extensions

    @classmethod
    def from_message(cls, message: Message) -> "MessageParts":
        return cls(message.extensions)

    @property
    def extensions(self) -> Extensions:
        if self._extensions is None:
            raise ExtensionsAlreadyExtracted()
        return self._extensions

    def take_extensions(self) -> Extensions:
        """Move the map out; later access raises ExtensionsAlreadyExtracted."""
        extensions = self.extensions
        self._extensions = None
        return extensions


class FromMessage:
    """Base class for types that know how to build themselves from a message.

    Subclasses override ``from_message``. Set ``consumes_extensions`` when the
    extractor takes ownership of the map.
    """

    consumes_extensions = False

    @classmethod
    async def from_message(cls, parts: MessageParts) -> Any:
        raise NotImplementedError


async def lookup(value_type: Type[T], parts: MessageParts) -> T:
    """Return a deep copy of the stored ``value_type`` or raise MissingExtension.

    Handlers never see the stored object itself, so whatever they change
    stays local to their call.
    """
    value = parts.extensions.get(value_type)
    if value is None:
        raise MissingExtension(type_name(value_type))
    return copy.deepcopy(value)


@dataclass(frozen=True)
class Extension(Generic[T]):
    """Typed value lookup, used as ``Extension[SomeType]`` in a signature."""
    value: T

    @classmethod
    async def extract(cls, value_type: Type[T], parts: MessageParts) -> "Extension[T]":
        return cls(await lookup(value_type, parts))


@dataclass
class Parts(FromMessage):
    """Gives the handler the whole extension map."""
    extensions: Extensions

    consumes_extensions = True

    @classmethod
    async def from_message(cls, parts: MessageParts) -> "Parts":
        return cls(parts.take_extensions())


@dataclass(frozen=True)
class Extractor:
    """One resolved handler parameter."""
    label: str
    extract: Callable[[MessageParts], Awaitable[Any]]
    consumes: bool = False


def type_name(value_type: Any) -> str:
    module = getattr(value_type, "__module__", "")
    qualname = getattr(value_type, "__qualname__", repr(value_type))
    if module in ("builtins", ""):
        return qualname
    return f"{module}.{qualname}"


def resolve_extractor(annotation: Any) -> Extractor:
    """Map a parameter annotation to the extractor that produces it.

    Raises:
        TypeError: If the annotation cannot be extracted from a message
    """
    if get_origin(annotation) is Extension:
        (value_type,) = get_args(annotation)
        if not isinstance(value_type, type):
            raise TypeError(f"Extension[...] needs a class, got {value_type!r}")
        return Extractor(
            label=f"Extension[{type_name(value_type)}]",
            extract=functools.partial(Extension.extract, value_type),
        )

    if not isinstance(annotation, type):
        raise TypeError(f"Cannot extract a value for annotation {annotation!r}")

    if issubclass(annotation, FromMessage):
        return Extractor(
            label=type_name(annotation),
            extract=annotation.from_message,
            consumes=annotation.consumes_extensions,
        )

    return Extractor(
        label=type_name(annotation),
        extract=functools.partial(lookup, annotation),
    )
