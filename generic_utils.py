"""
Utilities for reading generic type information out of Python's class machinery.

This module is the only place that talks to the host's reflection: ``typing``
aliases, ``__orig_bases__`` and pydantic's generic metadata. Everything above it
works on the shapes it hands out.

Key concepts:
- shape: any raw type value the runtime produces (a class, ``list[int]``,
  a specialized pydantic model, ``typing.Any``, a ``TypeVar``...)
- source: a strategy that recognises one family of parameterized shapes and
  splits it into origin and arguments
- declared superclass / interfaces: the generic bases a class lists in its own
  ``class`` statement, in declaration order
"""

import sys
import types
import typing
from typing import Any, List, Optional, Tuple, Union, get_args, get_origin
from dataclasses import dataclass, field
from abc import ABC, abstractmethod


_INNER_MARKER = "__inner_class__"
_INTERFACE_MARKER = "__generic_interface__"

# Bases that only declare type parameters; they are never a supertype.
_DECLARATION_BASES = frozenset({typing.Generic, typing.Protocol})

NOT_AN_ARRAY = object()


def is_union_type(origin: Any) -> bool:
    """Check if origin represents a Union type (handles both typing.Union and types.UnionType)."""
    union_type = getattr(types, 'UnionType', None)
    return origin is Union or (union_type is not None and origin is union_type)


def inner(cls: type) -> type:
    """Mark a nested class as an inner class.

    Parameterizations of an inner class always carry the enclosing class as
    their owner type.
    """
    setattr(cls, _INNER_MARKER, True)
    return cls


def interface(cls: type) -> type:
    """Register a class as an interface for interface-based resolution."""
    setattr(cls, _INTERFACE_MARKER, True)
    return cls


def is_inner(cls: Any) -> bool:
    return isinstance(cls, type) and cls.__dict__.get(_INNER_MARKER, False)


def is_interface(cls: Any) -> bool:
    """Check if a class is a protocol, a ``collections.abc`` ABC or registered via ``@interface``."""
    if not isinstance(cls, type):
        return False
    if cls.__dict__.get(_INTERFACE_MARKER, False):
        return True
    if cls.__dict__.get("_is_protocol", False):
        return True
    return cls.__module__ == "collections.abc"


def enclosing_class(cls: type) -> Optional[type]:
    """Find the class ``cls`` is nested in, following its ``__qualname__``.

    Returns None for top-level classes and for classes defined inside a function.
    """
    path = cls.__qualname__.split(".")[:-1]
    if not path or "<locals>" in path:
        return None

    target = sys.modules.get(cls.__module__)
    for name in path:
        target = getattr(target, name, None)
        if target is None:
            return None
    return target if isinstance(target, type) else None


def declared_bases(cls: type) -> Tuple[Any, ...]:
    """The bases as written in the class statement.

    Only the class's own ``__orig_bases__`` counts; the attribute is inherited
    through normal lookup, so reading it with ``getattr`` would report a parent's
    bases for a non-generic subclass.
    """
    return cls.__dict__.get("__orig_bases__", cls.__bases__)


@dataclass(frozen=True, kw_only=True)
class GenericShape:
    """A parameterized shape split into its parts.

    Attributes:
        origin: The raw type (e.g., list for list[int])
        args: The actual type arguments, in declaration order
        owner: The enclosing type for inner classes, None otherwise
    """

    origin: Any = None
    args: Tuple[Any, ...] = field(default_factory=tuple)
    owner: Any = None


class GenericSource(ABC):
    """Abstract base for one family of parameterized shapes."""

    @abstractmethod
    def can_handle(self, shape: Any) -> bool:
        """Check if this source recognises the shape as parameterized."""

    @abstractmethod
    def split(self, shape: Any) -> GenericShape:
        """Split a parameterized shape into origin and arguments."""


class BuiltinSource(GenericSource):
    """Source for ``typing`` aliases and ``types.GenericAlias`` (list[int], Dict[str, int], Box[int])."""

    def can_handle(self, shape: Any) -> bool:
        if isinstance(shape, type):
            return False
        origin = get_origin(shape)
        return origin is not None and origin is not typing.Annotated

    def split(self, shape: Any) -> GenericShape:
        origin = get_origin(shape)
        # int | None and Optional[int] are the same type
        if is_union_type(origin):
            origin = Union
        return GenericShape(origin=origin, args=get_args(shape))


class PydanticSource(GenericSource):
    """Source for specialized pydantic generic models.

    ``Model[int]`` is a real class rather than an alias; pydantic records the
    specialization in ``__pydantic_generic_metadata__``.
    """

    def can_handle(self, shape: Any) -> bool:
        if not isinstance(shape, type):
            return False
        metadata = shape.__dict__.get("__pydantic_generic_metadata__")
        return bool(metadata and metadata.get("origin"))

    def split(self, shape: Any) -> GenericShape:
        metadata = shape.__pydantic_generic_metadata__
        return GenericShape(origin=metadata["origin"], args=tuple(metadata.get("args", ())))


class GenericTypeUtils:
    """Unified interface over the generic sources and the class hierarchy."""

    def __init__(self, sources: Optional[List[GenericSource]] = None):
        if sources is None:
            sources = [BuiltinSource(), PydanticSource()]
        self.sources = list(sources)

    def source_for(self, shape: Any) -> Optional[GenericSource]:
        for source in self.sources:
            if source.can_handle(shape):
                return source
        return None

    def is_parameterized(self, shape: Any) -> bool:
        return self.source_for(shape) is not None

    def split(self, shape: Any) -> GenericShape:
        """Split a parameterized shape, deriving the owner of inner classes."""
        source = self.source_for(shape)
        if source is None:
            raise TypeError(f"{shape!r} is not a parameterized type")

        parts = source.split(shape)
        if parts.owner is None and is_inner(parts.origin):
            return GenericShape(origin=parts.origin, args=parts.args, owner=enclosing_class(parts.origin))
        return parts

    def raw_class(self, shape: Any) -> Any:
        """The class behind a shape: the origin of a parameterized shape, else the shape itself."""
        if self.is_parameterized(shape):
            return self.split(shape).origin
        return shape

    def array_component(self, shape: Any) -> Any:
        """Return the element type if the shape denotes an array, else ``NOT_AN_ARRAY``.

        Arrays are homogeneous variable-length tuples: ``tuple[X, ...]`` in generic
        form, or a ``tuple`` subclass declaring such a base as a class handle.
        """
        if isinstance(shape, type):
            if shape is tuple or not issubclass(shape, tuple) or self.is_parameterized(shape):
                return NOT_AN_ARRAY
            for base in declared_bases(shape):
                component = self.array_component(base)
                if component is not NOT_AN_ARRAY:
                    return component
            return NOT_AN_ARRAY

        if get_origin(shape) is not tuple:
            return NOT_AN_ARRAY
        args = get_args(shape)
        if len(args) == 2 and args[1] is ...:
            return args[0]
        return NOT_AN_ARRAY

    def declared_superclass(self, cls: type) -> Any:
        """The first declared base that is neither an interface nor a parameter declaration.

        Falls back to ``object`` when the class lists nothing else.
        """
        for base in declared_bases(cls):
            raw = self.raw_class(base)
            if raw in _DECLARATION_BASES or is_interface(raw):
                continue
            return base
        return object

    def declared_interfaces(self, cls: type) -> List[Any]:
        """The interface bases of a class, in declaration order."""
        return [
            base for base in declared_bases(cls)
            if self.raw_class(base) not in _DECLARATION_BASES and is_interface(self.raw_class(base))
        ]


# Global instance for convenience
generic_utils = GenericTypeUtils()


# Convenience functions that mirror the class methods
def declared_superclass(cls: type) -> Any:
    """The declared generic superclass shape of a class."""
    return generic_utils.declared_superclass(cls)


def declared_interfaces(cls: type) -> List[Any]:
    """The declared interface shapes of a class, in declaration order."""
    return generic_utils.declared_interfaces(cls)
