"""
Recover the type argument a class fixed for its generic superclass or interface.

    class StringList(Converter[list[str]]): ...

    resolve(StringList)  # Parameterized list<str>

Only the first type argument of the consulted relationship is extracted.
"""

import logging
from typing import Any, Optional

from generic_utils import GenericTypeUtils, generic_utils
from type_descriptors import TypeResolutionError, canonicalize


_log = logging.getLogger(__name__)


class MissingTypeParameter(TypeResolutionError):
    """Raised when the consulted generic relationship carries no type arguments."""


class MissingGenericInterface(TypeResolutionError):
    """Raised when interface-based resolution is requested for a class without interfaces."""


def _as_class(class_or_instance: Any) -> type:
    return class_or_instance if isinstance(class_or_instance, type) else type(class_or_instance)


class TypeResolver:
    """Resolves type arguments against the class hierarchy read by a ``GenericTypeUtils``."""

    def __init__(self, utils: Optional[GenericTypeUtils] = None):
        self.utils = utils or generic_utils

    def resolve_from_superclass(self, class_or_instance: Any) -> Any:
        """Return the first type argument of the declared superclass."""
        cls = _as_class(class_or_instance)
        superclass = self.utils.declared_superclass(cls)
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"resolve_from_superclass: {cls.__qualname__} extends {superclass!r}")
        return self._first_type_argument(cls, superclass)

    def resolve_from_interface(self, class_or_instance: Any) -> Any:
        """Return the first type argument of the first declared interface."""
        cls = _as_class(class_or_instance)
        interfaces = self.utils.declared_interfaces(cls)
        if not interfaces:
            raise MissingGenericInterface(f"Missing generic interface on {cls.__qualname__}")
        if _log.isEnabledFor(logging.DEBUG):
            _log.debug(f"resolve_from_interface: {cls.__qualname__} implements {interfaces!r}")
        return self._first_type_argument(cls, interfaces[0])

    def resolve(self, class_or_instance: Any) -> Any:
        """Resolve through the first interface, falling back to the superclass.

        Raises:
            MissingTypeParameter: If neither relationship carries a type argument
        """
        cls = _as_class(class_or_instance)
        try:
            return self.resolve_from_interface(cls)
        except (MissingGenericInterface, MissingTypeParameter) as e:
            if _log.isEnabledFor(logging.DEBUG):
                _log.debug(f"resolve: falling back to superclass of {cls.__qualname__}: {e}")

        try:
            return self.resolve_from_superclass(cls)
        except MissingTypeParameter as e:
            raise MissingTypeParameter(f"Missing generic type parameter on {cls.__qualname__}") from e

    def _first_type_argument(self, cls: type, relationship: Any) -> Any:
        if not self.utils.is_parameterized(relationship):
            raise MissingTypeParameter(
                f"Missing type parameter: {cls.__qualname__} extends non-generic {relationship!r}"
            )

        args = self.utils.split(relationship).args
        if not args:
            raise MissingTypeParameter(f"Missing type parameter: {relationship!r} has no type arguments")
        return canonicalize(args[0], self.utils)


# Global instance for convenience
type_resolver = TypeResolver()


def resolve_from_superclass(class_or_instance: Any) -> Any:
    """Resolve the first type argument of the declared generic superclass."""
    return type_resolver.resolve_from_superclass(class_or_instance)


def resolve_from_interface(class_or_instance: Any) -> Any:
    """Resolve the first type argument of the first declared generic interface."""
    return type_resolver.resolve_from_interface(class_or_instance)


def resolve(class_or_instance: Any) -> Any:
    """Resolve via the first interface, else the superclass."""
    return type_resolver.resolve(class_or_instance)
