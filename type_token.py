"""
Capture an otherwise unreachable type argument by subclassing.

    class _(TypeToken[dict[str, list[int]]]): pass

    _().captured_type  # dict<str, list<int>>
"""

from typing import Any, Generic, TypeVar

from type_resolver import MissingTypeParameter, resolve_from_superclass


T = TypeVar("T")


class TypeToken(Generic[T]):
    """Base class whose instances hold the type argument their class fixed for ``T``.

    Only direct subclasses that fix the argument can be instantiated; ``TypeToken``
    itself, a non-generic subclass of a token class, or a subclass that passes a
    type variable through all raise ``MissingTypeParameter``.
    """

    def __init__(self):
        captured = resolve_from_superclass(type(self))
        if isinstance(captured, TypeVar):
            raise MissingTypeParameter(
                f"Missing type parameter: {type(self).__qualname__} leaves {captured.__name__} unbound"
            )
        self._type = captured

    @property
    def captured_type(self) -> Any:
        return self._type

    def __eq__(self, other):
        if not isinstance(other, TypeToken):
            return NotImplemented
        return self._type == other._type

    def __hash__(self):
        return hash(self._type)

    def __repr__(self):
        return f"TypeToken<{self._type}>"
