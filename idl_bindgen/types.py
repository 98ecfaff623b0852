"""Type nodes: the tagged form of a field's declared IDL type.

An IDL type is written as one of a handful of JSON shapes::

    "u64"                                  primitive
    {"defined": "Foo"}                     reference to a user type
    {"defined": {"name": "Foo"}}           same, newer dialect
    {"array": ["u8", 32]}                  fixed-size array
    {"vec": "u8"}                          dynamic list
    {"option": "u64"}                      Option<T>
    {"coption": "pubkey"}                  C-style COption<T>

:func:`decode_type` turns such a value into exactly one node class below.
Shapes that match none of these become :class:`OpaqueType`; decoding never
raises on unfamiliar input.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

PRIMITIVES = frozenset(
    {
        "bool",
        "u8", "i8", "u16", "i16", "u32", "i32", "u64", "i64", "u128", "i128",
        "f32", "f64",
        "bytes",
        "string",
        "pubkey",
        "publicKey",
    }
)


@dataclass(frozen=True)
class PrimitiveType:
    name: str

    def to_idl(self) -> Any:
        return self.name


@dataclass(frozen=True)
class DefinedType:
    name: str

    def to_idl(self) -> Any:
        return {"defined": self.name}


@dataclass(frozen=True)
class ArrayType:
    element: "TypeNode"
    length: int

    def to_idl(self) -> Any:
        return {"array": [self.element.to_idl(), self.length]}


@dataclass(frozen=True)
class VecType:
    element: "TypeNode"

    def to_idl(self) -> Any:
        return {"vec": self.element.to_idl()}


@dataclass(frozen=True)
class OptionType:
    inner: "TypeNode"

    def to_idl(self) -> Any:
        return {"option": self.inner.to_idl()}


@dataclass(frozen=True)
class COptionType:
    """Kept apart from :class:`OptionType`: the wire encoding differs."""

    inner: "TypeNode"

    def to_idl(self) -> Any:
        return {"coption": self.inner.to_idl()}


@dataclass(frozen=True)
class OpaqueType:
    """A shape we could not recognize. ``raw`` is a compact JSON rendering."""

    raw: str = ""

    def to_idl(self) -> Any:
        return {"opaque": self.raw}


TypeNode = Union[PrimitiveType, DefinedType, ArrayType, VecType, OptionType, COptionType, OpaqueType]


def _raw(value: Any) -> str:
    # repr keeps this total: the value may not be JSON-serializable
    return repr(value)


def _defined_name(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return value["name"]
    return None


def _array_length(value: Any) -> Optional[int]:
    # bool is an int subclass; [T, true] is not a length
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 0 else None


def decode_type(value: Any) -> TypeNode:
    if isinstance(value, str):
        return PrimitiveType(value)
    if not isinstance(value, dict):
        return OpaqueType(_raw(value))

    if "defined" in value:
        name = _defined_name(value["defined"])
        return DefinedType(name) if name is not None else OpaqueType(_raw(value))
    if "array" in value:
        pair = value["array"]
        if isinstance(pair, (list, tuple)) and len(pair) == 2:
            length = _array_length(pair[1])
            if length is not None:
                return ArrayType(decode_type(pair[0]), length)
        return OpaqueType(_raw(value))
    if "vec" in value:
        return VecType(decode_type(value["vec"]))
    if "option" in value:
        return OptionType(decode_type(value["option"]))
    if "coption" in value:
        return COptionType(decode_type(value["coption"]))
    return OpaqueType(_raw(value))


def children(node: TypeNode) -> tuple:
    if isinstance(node, (ArrayType, VecType)):
        return (node.element,)
    if isinstance(node, (OptionType, COptionType)):
        return (node.inner,)
    return ()


def walk(node: TypeNode):
    """Yield ``node`` and every node nested inside it, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def contains_defined(node: TypeNode) -> bool:
    return any(isinstance(n, DefinedType) for n in walk(node))


# --- enum variant members -----------------------------------------------------


@dataclass(frozen=True)
class PositionalField:
    """Tuple-style variant member: ``Variant(u64, Foo)``."""

    type: TypeNode

    def to_idl(self) -> Any:
        return self.type.to_idl()


@dataclass(frozen=True)
class NamedField:
    """Struct-style variant member: ``Variant { amount: u64 }``."""

    name: str
    type: TypeNode

    def to_idl(self) -> Any:
        return {"name": self.name, "type": self.type.to_idl()}


EnumField = Union[PositionalField, NamedField]


def decode_enum_field(value: Any) -> EnumField:
    # {"defined": ...} is also a dict, so name+type has to be checked first
    if isinstance(value, str):
        return PositionalField(PrimitiveType(value))
    if isinstance(value, dict) and "name" in value and "type" in value:
        return NamedField(str(value["name"]), decode_type(value["type"]))
    return PositionalField(decode_type(value))
