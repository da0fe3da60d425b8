"""
Canonical, structurally comparable descriptors for generic types.

The runtime hands out many equivalent spellings of one type: ``List[str]`` and
``list[str]`` are different objects, and every subscription builds a fresh alias.
``canonicalize`` rewrites any of them into one of four frozen descriptor
variants so that equal types compare and hash equal no matter how they were
obtained:

- Named: a plain class (``str``, a user class)
- ArrayOf: a homogeneous variable-length tuple (``tuple[str, ...]``)
- Parameterized: a generic class applied to arguments (``dict[str, int]``)
- Wildcard: a bounded unknown type (``?``, ``? extends int``, ``? super bool``)

Descriptors render in the declaration syntax ``Raw<A, B>``, ``X[]``, ``? extends X``.
"""

import typing
from typing import Any, Optional, Sequence, Tuple, Union, get_args
from dataclasses import dataclass, field

from generic_utils import NOT_AN_ARRAY, GenericTypeUtils, generic_utils, is_inner, is_union_type


class TypeResolutionError(Exception):
    """Base class for all type resolution failures."""


class InvalidTypeShape(TypeResolutionError, ValueError):
    """Raised when a descriptor is built from owner/bound combinations that cannot exist."""


_PRIMITIVE_VALUES = (bool, int, float, complex, str, bytes)


def _is_primitive(value: Any) -> bool:
    """A primitive value standing where a type is expected (``None``, ``...``, ``3``, ``"x"``)."""
    return value is None or value is ... or isinstance(value, _PRIMITIVE_VALUES)


def _type_name(value: Any) -> str:
    if isinstance(value, TypeDescriptor):
        return str(value)
    if value is ...:
        return "..."
    if isinstance(value, tuple):
        return "[" + ", ".join(_type_name(item) for item in value) + "]"
    if isinstance(value, type):
        return value.__qualname__
    name = getattr(value, "__name__", None)
    return name if isinstance(name, str) else repr(value)


class TypeDescriptor:
    """Common base of the descriptor variants."""

    __slots__ = ()


@dataclass(frozen=True)
class Named(TypeDescriptor):
    """A non-generic, non-array type such as ``str`` or a raw class."""

    identity: Any

    def __post_init__(self):
        if (isinstance(self.identity, TypeDescriptor)
                or typing.get_origin(self.identity) is not None
                or generic_utils.array_component(self.identity) is not NOT_AN_ARRAY):
            raise InvalidTypeShape(f"{self.identity!r} is not a plain class; use canonicalize()")

    def __str__(self) -> str:
        if isinstance(self.identity, str):
            return self.identity
        return _type_name(self.identity)


@dataclass(frozen=True)
class ArrayOf(TypeDescriptor):
    """An array of ``component``; the component is canonicalized on construction."""

    component: Any

    def __post_init__(self):
        object.__setattr__(self, "component", canonicalize(self.component))

    def __str__(self) -> str:
        return _type_name(self.component) + "[]"


OBJECT = Named(object)


@dataclass(frozen=True, kw_only=True)
class Parameterized(TypeDescriptor):
    """A generic type applied to arguments, e.g. ``dict<str, object>``.

    Attributes:
        raw: The unparameterized type (e.g., list for list[str])
        arguments: The actual type arguments
        owner: The enclosing type; required when ``raw`` is an inner class
    """

    raw: Any
    arguments: Tuple[Any, ...] = field(default_factory=tuple)
    owner: Optional[Any] = None

    def __post_init__(self):
        raw_class = self.raw.identity if isinstance(self.raw, Named) else self.raw
        if self.owner is None and is_inner(raw_class):
            raise InvalidTypeShape(f"{raw_class.__qualname__} is an inner class and needs an owner type")

        arguments = tuple(_canonicalize_argument(arg) for arg in self.arguments)
        if is_union_type(raw_class):
            raw_class = Union
            arguments = _union_members(arguments)

        object.__setattr__(self, "owner", None if self.owner is None else canonicalize(self.owner))
        object.__setattr__(self, "raw", canonicalize(raw_class))
        object.__setattr__(self, "arguments", arguments)

    @classmethod
    def of(cls, raw: Any, *arguments: Any, owner: Any = None) -> "Parameterized":
        return cls(raw=raw, arguments=arguments, owner=owner)

    def __str__(self) -> str:
        if not self.arguments:
            return _type_name(self.raw)
        return f"{_type_name(self.raw)}<{', '.join(_type_name(arg) for arg in self.arguments)}>"


def _union_members(arguments: Tuple[Any, ...]) -> Tuple[Any, ...]:
    """Deduplicated union members in a fixed order; member order carries no meaning."""
    members = []
    for arg in arguments:
        if arg not in members:
            members.append(arg)
    return tuple(sorted(members, key=lambda member: (_type_name(member), repr(member))))


_NO_LOWER_BOUND = object()


@dataclass(frozen=True, kw_only=True)
class Wildcard(TypeDescriptor):
    """A bounded existential type: ``?``, ``? extends upper`` or ``? super lower``.

    A lower bound only combines with the universal top (``object``) as upper bound.
    """

    upper_bound: Any = OBJECT
    lower_bound: Optional[Any] = _NO_LOWER_BOUND

    def __post_init__(self):
        if _is_primitive(self.upper_bound):
            raise InvalidTypeShape(f"Wildcard upper bound must be a type, got {self.upper_bound!r}")
        upper = canonicalize(self.upper_bound)

        if self.lower_bound is _NO_LOWER_BOUND:
            object.__setattr__(self, "lower_bound", None)
        else:
            if _is_primitive(self.lower_bound):
                raise InvalidTypeShape(f"Wildcard lower bound must be a type, got {self.lower_bound!r}")
            if upper != OBJECT:
                raise InvalidTypeShape(f"Wildcard with lower bound {_type_name(self.lower_bound)} "
                                       f"cannot have upper bound {upper}")
            object.__setattr__(self, "lower_bound", canonicalize(self.lower_bound))

        object.__setattr__(self, "upper_bound", upper)

    @classmethod
    def from_bounds(cls, upper_bounds: Sequence[Any], lower_bounds: Sequence[Any] = ()) -> "Wildcard":
        """Build a wildcard from bound sequences, as a runtime wildcard reports them."""
        upper_bounds, lower_bounds = tuple(upper_bounds), tuple(lower_bounds)
        if len(lower_bounds) > 1:
            raise InvalidTypeShape(f"Wildcard takes at most one lower bound, got {len(lower_bounds)}")
        if len(upper_bounds) != 1:
            raise InvalidTypeShape(f"Wildcard takes exactly one upper bound, got {len(upper_bounds)}")
        if not lower_bounds:
            return cls(upper_bound=upper_bounds[0])
        if _is_primitive(lower_bounds[0]):
            raise InvalidTypeShape(f"Wildcard lower bound must be a type, got {lower_bounds[0]!r}")
        return cls(upper_bound=upper_bounds[0], lower_bound=lower_bounds[0])

    @classmethod
    def extends(cls, bound: Any) -> "Wildcard":
        return cls(upper_bound=bound)

    @classmethod
    def super_(cls, bound: Any) -> "Wildcard":
        return cls(lower_bound=bound)

    @property
    def upper_bounds(self) -> Tuple[Any, ...]:
        return (self.upper_bound,)

    @property
    def lower_bounds(self) -> Tuple[Any, ...]:
        return () if self.lower_bound is None else (self.lower_bound,)

    def __str__(self) -> str:
        if self.lower_bound is not None:
            return f"? super {_type_name(self.lower_bound)}"
        if self.upper_bound == OBJECT:
            return "?"
        return f"? extends {_type_name(self.upper_bound)}"


def _is_wildcard_form(shape: Any) -> bool:
    return hasattr(shape, "upper_bounds") and hasattr(shape, "lower_bounds")


def _canonicalize_argument(arg: Any, utils: Optional[GenericTypeUtils] = None) -> Any:
    # Callable[[int], str] reports its parameter list as a plain list
    if isinstance(arg, (list, tuple)):
        return tuple(canonicalize(item, utils) for item in arg)
    return canonicalize(arg, utils)


def canonicalize(raw_type: Any, utils: Optional[GenericTypeUtils] = None) -> Any:
    """Rewrite a runtime type shape into its canonical descriptor.

    Type variables, forward references and other shapes without a descriptor
    variant are returned unchanged. ``canonicalize`` is idempotent.

    Args:
        raw_type: Any type value the runtime can produce
        utils: The reflection helper to read shapes with (defaults to the global one)

    Returns:
        The canonical descriptor, or ``raw_type`` itself for unmodelled shapes
    """
    utils = utils or generic_utils

    if isinstance(raw_type, TypeDescriptor):
        return raw_type

    if typing.get_origin(raw_type) is typing.Annotated:
        return canonicalize(get_args(raw_type)[0], utils)

    component = utils.array_component(raw_type)
    if component is not NOT_AN_ARRAY:
        return ArrayOf(canonicalize(component, utils))

    if utils.is_parameterized(raw_type):
        parts = utils.split(raw_type)
        if not parts.args:
            return canonicalize(parts.origin, utils)
        return Parameterized(
            owner=None if parts.owner is None else canonicalize(parts.owner, utils),
            raw=canonicalize(parts.origin, utils),
            arguments=tuple(_canonicalize_argument(arg, utils) for arg in parts.args),
        )

    # typing.Any is a class on current interpreters
    if raw_type is typing.Any:
        return Wildcard()

    if isinstance(raw_type, type):
        return Named(raw_type)

    if _is_wildcard_form(raw_type):
        return Wildcard.from_bounds(
            [canonicalize(bound, utils) for bound in raw_type.upper_bounds],
            [canonicalize(bound, utils) for bound in raw_type.lower_bounds],
        )

    return raw_type


def render(descriptor: Any) -> str:
    """Return the declaration-syntax string of a descriptor (or any type shape)."""
    return _type_name(descriptor)


def equal_descriptors(a: Any, b: Any) -> bool:
    """Null-safe structural equality."""
    return a is b or (a is not None and a == b)


def hash_descriptor(descriptor: Any) -> int:
    """Structural hash, consistent with ``equal_descriptors``."""
    return 0 if descriptor is None else hash(descriptor)
