"""In-memory model of an Anchor IDL document.

Both the current IDL layout (``address`` at the top level, ``writable`` /
``signer`` account flags, explicit discriminators) and the older one
(``metadata.address``, ``isMut`` / ``isSigner``, inline account types) are
accepted. Keys we don't know about are ignored.
"""

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from solders.pubkey import Pubkey

from .errors import SchemaParseError, SchemaWarning
from .types import EnumField, TypeNode, decode_enum_field, decode_type


@dataclass(frozen=True)
class Field:
    name: str
    type: TypeNode

    def to_idl(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.to_idl()}


@dataclass(frozen=True)
class Variant:
    name: str
    fields: Tuple[EnumField, ...] = ()

    def to_idl(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        if self.fields:
            out["fields"] = [f.to_idl() for f in self.fields]
        return out


@dataclass(frozen=True)
class TypeDefinition:
    name: str
    kind: str  # struct | enum
    fields: Tuple[Field, ...] = ()
    variants: Tuple[Variant, ...] = ()

    @property
    def is_enum(self) -> bool:
        return self.kind == "enum"

    def to_idl(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"kind": self.kind}
        if self.is_enum:
            body["variants"] = [v.to_idl() for v in self.variants]
        else:
            body["fields"] = [f.to_idl() for f in self.fields]
        return {"name": self.name, "type": body}


@dataclass(frozen=True)
class AccountUsage:
    name: str
    writable: bool = False
    signer: bool = False


@dataclass(frozen=True)
class Instruction:
    name: str
    args: Tuple[Field, ...] = ()
    accounts: Tuple[AccountUsage, ...] = ()
    discriminator: Optional[bytes] = None


@dataclass(frozen=True)
class AccountDefinition:
    """An on-chain account layout.

    The layout itself lives in the TypeDefinition of the same name; the
    association is by name only and is not checked here.
    """

    name: str
    discriminator: Optional[bytes] = None


@dataclass(frozen=True)
class EventDefinition:
    name: str
    fields: Tuple[Field, ...] = ()
    discriminator: Optional[bytes] = None


@dataclass(frozen=True)
class ErrorDefinition:
    code: int
    name: str
    msg: str = ""


@dataclass(frozen=True)
class Schema:
    name: str
    address: str = ""
    version: str = ""
    metadata_spec: str = ""
    instructions: Tuple[Instruction, ...] = ()
    accounts: Tuple[AccountDefinition, ...] = ()
    types: Tuple[TypeDefinition, ...] = ()
    events: Tuple[EventDefinition, ...] = ()
    errors: Tuple[ErrorDefinition, ...] = ()
    _type_index: Dict[str, TypeDefinition] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        # types are unique by construction, see _unique_types
        object.__setattr__(self, "_type_index", {t.name: t for t in self.types})

    def type_names(self) -> FrozenSet[str]:
        return frozenset(self._type_index)

    def find_type(self, name: str) -> Optional[TypeDefinition]:
        return self._type_index.get(name)

    def program_id(self) -> Optional[Pubkey]:
        return parse_pubkey(self.address)

    def types_to_idl(self) -> List[Dict[str, Any]]:
        return [t.to_idl() for t in self.types]


def parse_pubkey(address: str) -> Optional[Pubkey]:
    """``address`` as a Pubkey, or None when it is empty or not valid base58."""
    if not address:
        return None
    try:
        return Pubkey.from_string(address)
    except ValueError:
        return None


# --- decoding -----------------------------------------------------------------


def _list(obj: Dict[str, Any], key: str) -> List[Any]:
    value = obj.get(key)
    return value if isinstance(value, list) else []


def _dict(obj: Any, key: str) -> Dict[str, Any]:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, dict) else {}


def _str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else ""


def _discriminator(obj: Dict[str, Any]) -> Optional[bytes]:
    value = obj.get("discriminator")
    if not isinstance(value, list) or not value:
        return None
    try:
        return bytes(value)
    except (TypeError, ValueError) as e:
        raise SchemaParseError(f"invalid discriminator for {obj.get('name')!r}: {value!r}") from e


def _fields(items: List[Any]) -> Tuple[Field, ...]:
    return tuple(
        Field(_str(f, "name"), decode_type(f.get("type")))
        for f in items
        if isinstance(f, dict)
    )


def _variant(obj: Dict[str, Any]) -> Variant:
    return Variant(_str(obj, "name"), tuple(decode_enum_field(f) for f in _list(obj, "fields")))


def _type_definition(name: str, body: Dict[str, Any]) -> TypeDefinition:
    kind = _str(body, "kind") or "struct"
    if kind == "enum":
        variants = tuple(_variant(v) for v in _list(body, "variants") if isinstance(v, dict))
        return TypeDefinition(name, kind, variants=variants)
    return TypeDefinition(name, kind, fields=_fields(_list(body, "fields")))


def _flag(obj: Dict[str, Any], new_key: str, legacy_key: str) -> bool:
    if new_key in obj:
        return bool(obj[new_key])
    return bool(obj.get(legacy_key, False))


def _account_usages(items: List[Any], prefix: str = "") -> List[AccountUsage]:
    usages: List[AccountUsage] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = prefix + _str(item, "name")
        if isinstance(item.get("accounts"), list):
            usages.extend(_account_usages(item["accounts"], prefix=f"{name}_"))
            continue
        usages.append(
            AccountUsage(
                name,
                writable=_flag(item, "writable", "isMut"),
                signer=_flag(item, "signer", "isSigner"),
            )
        )
    return usages


def _instruction(obj: Dict[str, Any]) -> Instruction:
    return Instruction(
        name=_str(obj, "name"),
        args=_fields(_list(obj, "args")),
        accounts=tuple(_account_usages(_list(obj, "accounts"))),
        discriminator=_discriminator(obj),
    )


def _unique_types(defs: List[TypeDefinition]) -> Tuple[TypeDefinition, ...]:
    seen: Dict[str, TypeDefinition] = {}
    for d in defs:
        if d.name in seen:
            warnings.warn(f"duplicate type definition {d.name!r} ignored", SchemaWarning, stacklevel=3)
            continue
        seen[d.name] = d
    return tuple(seen.values())


def decode_schema(doc: Dict[str, Any], origin: Union[str, Path, None] = None) -> Schema:
    metadata = _dict(doc, "metadata")

    name = _str(doc, "name") or _str(metadata, "name")
    if not name and origin is not None:
        name = Path(origin).stem
    if not name:
        name = "program"

    type_defs = [
        _type_definition(_str(t, "name"), _dict(t, "type"))
        for t in _list(doc, "types")
        if isinstance(t, dict)
    ]
    accounts = []
    for a in _list(doc, "accounts"):
        if not isinstance(a, dict):
            continue
        accounts.append(AccountDefinition(_str(a, "name"), _discriminator(a)))
        if isinstance(a.get("type"), dict):
            # legacy IDLs declare the account layout inline
            type_defs.append(_type_definition(_str(a, "name"), a["type"]))

    events = [
        EventDefinition(_str(e, "name"), _fields(_list(e, "fields")), _discriminator(e))
        for e in _list(doc, "events")
        if isinstance(e, dict)
    ]
    errors = []
    for e in _list(doc, "errors"):
        if not isinstance(e, dict):
            continue
        code = e.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            raise SchemaParseError(f"error {e.get('name')!r} has a non-integer code: {code!r}")
        errors.append(ErrorDefinition(code, _str(e, "name"), _str(e, "msg")))

    return Schema(
        name=name,
        address=_str(doc, "address") or _str(metadata, "address"),
        version=_str(doc, "version") or _str(metadata, "version"),
        metadata_spec=_str(metadata, "spec"),
        instructions=tuple(_instruction(i) for i in _list(doc, "instructions") if isinstance(i, dict)),
        accounts=tuple(accounts),
        types=_unique_types(type_defs),
        events=tuple(events),
        errors=tuple(errors),
    )


def parse_schema(data: Union[bytes, str, Dict[str, Any]], origin: Union[str, Path, None] = None) -> Schema:
    """Parse IDL JSON (text, bytes, or an already-decoded dict) into a Schema.

    ``origin`` is where the document came from; its stem names the program
    when the IDL itself doesn't.
    """
    if isinstance(data, dict):
        doc = data
    else:
        try:
            doc = json.loads(data)
        except (ValueError, UnicodeDecodeError) as e:
            raise SchemaParseError(f"failed to parse IDL: {e}") from e
    if not isinstance(doc, dict):
        raise SchemaParseError(f"IDL must be a JSON object, got {type(doc).__name__}")
    return decode_schema(doc, origin)
