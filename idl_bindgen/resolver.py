"""Map IDL type nodes to Python annotations and borsh layouts."""

from dataclasses import dataclass
from typing import AbstractSet, Mapping, Optional

from .naming import class_name
from .types import (
    ArrayType,
    COptionType,
    DefinedType,
    OptionType,
    PrimitiveType,
    TypeNode,
    VecType,
)


@dataclass(frozen=True)
class TargetType:
    annotation: str  # type expression used in generated dataclasses
    layout: str  # borsh_construct expression that encodes/decodes it


ANY = TargetType("typing.Any", "borsh.Bytes")

# Python ints are arbitrary precision, so 128-bit values need no wrapper type.
PRIMITIVE_TARGETS = {
    "bool": TargetType("bool", "borsh.Bool"),
    "u8": TargetType("int", "borsh.U8"),
    "i8": TargetType("int", "borsh.I8"),
    "u16": TargetType("int", "borsh.U16"),
    "i16": TargetType("int", "borsh.I16"),
    "u32": TargetType("int", "borsh.U32"),
    "i32": TargetType("int", "borsh.I32"),
    "u64": TargetType("int", "borsh.U64"),
    "i64": TargetType("int", "borsh.I64"),
    "u128": TargetType("int", "borsh.U128"),
    "i128": TargetType("int", "borsh.I128"),
    "f32": TargetType("float", "borsh.F32"),
    "f64": TargetType("float", "borsh.F64"),
    "bytes": TargetType("bytes", "borsh.Bytes"),
    "string": TargetType("str", "borsh.String"),
    "pubkey": TargetType("Pubkey", "BorshPubkey"),
    "publicKey": TargetType("Pubkey", "BorshPubkey"),
}


def defined_target(name: str, class_names: Optional[Mapping[str, str]] = None) -> TargetType:
    cls = (class_names or {}).get(name) or class_name(name)
    # bound lazily so declaration order and self-reference don't matter
    return TargetType(cls, f"construct.LazyBound(lambda: {cls}.layout)")


def resolve(
    node: TypeNode,
    known_names: AbstractSet[str] = frozenset(),
    class_names: Optional[Mapping[str, str]] = None,
) -> TargetType:
    """Resolve ``node`` to its target type.

    Total over every node shape. ``known_names`` is accepted for callers that
    want to report dangling references, but a ``DefinedType`` is never checked
    against it: an unknown name still resolves to a forward reference.
    ``class_names`` maps IDL type names to the class names actually emitted;
    names missing from it are Pascal-cased.
    """
    if isinstance(node, PrimitiveType):
        return PRIMITIVE_TARGETS.get(node.name, ANY)
    if isinstance(node, DefinedType):
        return defined_target(node.name, class_names)
    if isinstance(node, ArrayType):
        inner = resolve(node.element, known_names, class_names)
        return TargetType(f"list[{inner.annotation}]", f"{inner.layout}[{node.length}]")
    if isinstance(node, VecType):
        inner = resolve(node.element, known_names, class_names)
        return TargetType(f"list[{inner.annotation}]", f"borsh.Vec({inner.layout})")
    if isinstance(node, OptionType):
        inner = resolve(node.inner, known_names, class_names)
        return TargetType(f"typing.Optional[{inner.annotation}]", f"borsh.Option({inner.layout})")
    if isinstance(node, COptionType):
        inner = resolve(node.inner, known_names, class_names)
        return TargetType(f"typing.Optional[{inner.annotation}]", f"COption({inner.layout})")
    return ANY


def is_resolved(node: TypeNode) -> bool:
    """False when ``node`` itself falls back to the opaque type."""
    if isinstance(node, PrimitiveType):
        return node.name in PRIMITIVE_TARGETS
    return isinstance(node, (DefinedType, ArrayType, VecType, OptionType, COptionType))
