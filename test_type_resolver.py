"""
Tests for type argument resolution through generic superclasses and interfaces.
"""

import collections.abc
import logging
from typing import Any, Dict, Generic, List, Protocol, TypeVar

import pytest
from pydantic import BaseModel

from generic_utils import BuiltinSource, GenericTypeUtils, inner, interface
from type_descriptors import ArrayOf, InvalidTypeShape, Named, Parameterized, Wildcard, render
from type_resolver import (
    MissingGenericInterface, MissingTypeParameter, TypeResolver, resolve, resolve_from_interface,
    resolve_from_superclass
)

A = TypeVar('A')


class Base(Generic[A]):
    pass


class Converter(Protocol[A]):
    def convert(self, value: Any) -> A:
        ...


@interface
class Handler(Generic[A]):
    pass


class Plain:
    pass


class StringBase(Base[str]):
    pass


class IntBaseStringConverter(Base[int], Converter[str]):
    def convert(self, value):
        return str(value)


class StringConverterIntBase(Converter[str], Base[int]):
    def convert(self, value):
        return str(value)


class SizedFirst(collections.abc.Sized, Converter[str], Base[int]):
    def __len__(self):
        return 0


class Names(collections.abc.Sequence[str]):
    def __getitem__(self, index):
        raise IndexError(index)

    def __len__(self):
        return 0


class JsonHandler(Handler[Dict[str, Any]]):
    pass


class PydanticBox(BaseModel, Generic[A]):
    item: A


class IntPydanticBox(PydanticBox[int]):
    pass


class ListPydanticBox(PydanticBox[List[str]]):
    pass


class TestResolveFromSuperclass:

    def test_concrete_argument(self):
        assert resolve_from_superclass(StringBase) == Named(str)

    def test_instance(self):
        assert resolve_from_superclass(StringBase()) == Named(str)

    def test_nested_argument(self):
        class Nested(Base[Dict[str, List[int]]]):
            pass

        descriptor = resolve_from_superclass(Nested)
        assert descriptor == Parameterized.of(dict, str, Parameterized.of(list, int))
        assert render(descriptor) == "dict<str, list<int>>"

    def test_array_argument(self):
        class Arrays(Base[tuple[bytes, ...]]):
            pass

        assert resolve_from_superclass(Arrays) == ArrayOf(Named(bytes))

    def test_only_first_argument(self):
        B = TypeVar('B')

        class Pair(Generic[A, B]):
            pass

        class StrIntPair(Pair[str, int]):
            pass

        assert resolve_from_superclass(StrIntPair) == Named(str)

    def test_type_variable_passes_through(self):
        class Open(Base[A]):
            pass

        assert resolve_from_superclass(Open) is A

    def test_non_generic_superclass(self):
        class Child(StringBase):
            pass

        with pytest.raises(MissingTypeParameter):
            resolve_from_superclass(Child)

    def test_no_superclass(self):
        with pytest.raises(MissingTypeParameter):
            resolve_from_superclass(Plain)

    def test_generic_declaration_only(self):
        with pytest.raises(MissingTypeParameter):
            resolve_from_superclass(Base)

    def test_superclass_without_arguments(self):
        class RawList(List):
            pass

        with pytest.raises(MissingTypeParameter):
            resolve_from_superclass(RawList)

    def test_interfaces_are_not_superclasses(self):
        with pytest.raises(MissingTypeParameter):
            resolve_from_superclass(JsonHandler)
        assert resolve_from_superclass(IntBaseStringConverter) == Named(int)
        assert resolve_from_superclass(StringConverterIntBase) == Named(int)

    def test_invalid_argument_shape_propagates(self):
        @inner
        class Cell(Generic[A]):
            pass

        class Holder(Base[Cell[int]]):
            pass

        with pytest.raises(InvalidTypeShape):
            resolve_from_superclass(Holder)


class TestResolveFromInterface:

    def test_protocol(self):
        assert resolve_from_interface(IntBaseStringConverter) == Named(str)

    def test_collections_abc(self):
        assert resolve_from_interface(Names) == Named(str)

    def test_registered_interface(self):
        descriptor = resolve_from_interface(JsonHandler)
        assert descriptor == Parameterized.of(dict, str, Wildcard())
        assert render(descriptor) == "dict<str, ?>"

    def test_no_interfaces(self):
        with pytest.raises(MissingGenericInterface):
            resolve_from_interface(StringBase)
        with pytest.raises(MissingGenericInterface):
            resolve_from_interface(Plain())

    def test_first_interface_not_generic(self):
        with pytest.raises(MissingTypeParameter):
            resolve_from_interface(SizedFirst)


class TestResolve:

    def test_interface_takes_precedence(self):
        assert resolve(IntBaseStringConverter) == Named(str)
        assert resolve(StringConverterIntBase) == Named(str)

    def test_falls_back_to_superclass(self):
        assert resolve(StringBase) == Named(str)

    def test_only_first_interface_is_consulted(self):
        # Converter[str] comes second, so resolution falls back to Base[int]
        assert resolve(SizedFirst) == Named(int)

    def test_neither_relationship(self):
        with pytest.raises(MissingTypeParameter) as excinfo:
            resolve(Plain)
        assert isinstance(excinfo.value.__cause__, MissingTypeParameter)

    def test_instance(self):
        assert resolve(IntBaseStringConverter()) == Named(str)

    def test_invalid_interface_argument_is_not_swallowed(self):
        @inner
        class Cell(Generic[A]):
            pass

        class Holder(Handler[Cell[int]], Base[str]):
            pass

        with pytest.raises(InvalidTypeShape):
            resolve(Holder)

    def test_fallback_is_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="type_resolver")
        resolve(StringBase)
        assert any("falling back to superclass" in record.getMessage() for record in caplog.records)


class TestPydanticModels:

    def test_specialized_superclass(self):
        assert resolve_from_superclass(IntPydanticBox) == Named(int)
        assert resolve(IntPydanticBox) == Named(int)

    def test_nested_argument(self):
        assert resolve(ListPydanticBox) == Parameterized.of(list, str)

    def test_instance(self):
        assert resolve(IntPydanticBox(item=3)) == Named(int)

    def test_unspecialized_model(self):
        with pytest.raises(MissingTypeParameter):
            resolve(PydanticBox)


class TestTypeResolver:

    def test_custom_utils(self):
        resolver = TypeResolver(GenericTypeUtils(sources=[BuiltinSource()]))
        assert resolver.resolve(StringBase) == Named(str)
        with pytest.raises(MissingTypeParameter):
            resolver.resolve_from_superclass(IntPydanticBox)

    def test_cross_query_stability(self):
        class First(Base[Dict[str, List[int]]]):
            pass

        class Second(Base[dict[str, list[int]]]):
            pass

        first, second = resolve(First), resolve(Second)
        assert first == second
        assert hash(first) == hash(second)
