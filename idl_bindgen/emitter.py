"""Turn a Schema into the declarations of a Python bindings module.

:func:`build_context` does all the type work (resolution, discriminators,
encode/decode expressions); the Jinja2 template under ``templates/`` only
lays the result out as source text.
"""

import warnings
from dataclasses import dataclass
from typing import AbstractSet, Dict, List, Mapping, Optional, Set, Tuple, Union

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .discriminator import (
    ACCOUNT_NAMESPACE,
    EVENT_NAMESPACE,
    INSTRUCTION_NAMESPACE,
    bytes_literal,
    resolve_discriminator,
)
from .errors import RenderError, SchemaWarning, UnresolvedReferenceWarning
from .naming import class_name, constant_name, field_name, py_ident, to_snake_case
from .resolver import is_resolved, resolve
from .schema import Field, Schema, TypeDefinition, parse_pubkey
from .types import (
    ArrayType,
    COptionType,
    DefinedType,
    NamedField,
    OpaqueType,
    OptionType,
    PrimitiveType,
    TypeNode,
    VecType,
    contains_defined,
    walk,
)

TEMPLATE_NAME = "bindings.py.j2"

# members every generated dataclass defines itself
RESERVED_MEMBERS = frozenset({"layout", "from_decoded", "to_encodable", "kind", "discriminator"})
# attributes of the generated client class
CLIENT_MEMBERS = frozenset({"close", "connection", "program_id"})
# names the template binds at module level, plus the builtins generated code calls
MODULE_NAMES = frozenset(
    {
        "annotations",
        "abc",
        "typing",
        "dataclass",
        "borsh",
        "construct",
        "BorshPubkey",
        "COption",
        "EnumForCodegen",
        "Container",
        "AsyncClient",
        "AccountMeta",
        "Instruction",
        "Pubkey",
        "PROGRAM_ID",
        "ERRORS",
        "from_code",
        "bytes",
        "len",
        "list",
        "dict",
        "int",
        "str",
        "bool",
        "float",
        "type",
        "super",
        "classmethod",
        "Exception",
        "ValueError",
    }
)


@dataclass(frozen=True)
class GeneratorOptions:
    package: str = ""
    client_name: str = ""
    program_id: str = ""  # overrides the IDL address


@dataclass(frozen=True)
class FieldDecl:
    name: str
    annotation: str
    layout: str
    decode: str
    encode: str


@dataclass(frozen=True)
class StructDecl:
    name: str
    idl_name: str
    fields: Tuple[FieldDecl, ...]
    kind: str = "struct"


@dataclass(frozen=True)
class VariantDecl:
    class_name: str
    name: str
    index: int
    fields: Tuple[FieldDecl, ...]


@dataclass(frozen=True)
class EnumDecl:
    name: str
    idl_name: str
    variants: Tuple[VariantDecl, ...]
    kind: str = "enum"


@dataclass(frozen=True)
class AccountDecl:
    idl_name: str
    class_name: str
    constant: str
    decoder: str
    encoder: str
    fetcher: str  # client method name
    discriminator: bytes
    explicit: bool


@dataclass(frozen=True)
class AccountMetaDecl:
    name: str
    writable: bool
    signer: bool


@dataclass(frozen=True)
class InstructionDecl:
    idl_name: str
    function: str
    method: str
    constant: str
    discriminator: bytes
    explicit: bool
    args: StructDecl
    accounts_class: str
    accounts: Tuple[AccountMetaDecl, ...]


@dataclass(frozen=True)
class EventDecl:
    idl_name: str
    class_name: str
    constant: str
    decoder: str  # empty when the event has no layout
    discriminator: bytes
    struct: Optional[StructDecl]
    decodable: bool


@dataclass(frozen=True)
class ErrorDecl:
    class_name: str
    code: int
    name: str
    msg: str


@dataclass(frozen=True)
class BindingsContext:
    program_name: str
    program_class: str
    package: str
    version: str
    client_name: str
    program_id: str
    error_base: str
    errors: Tuple[ErrorDecl, ...]
    types: Tuple[Union[StructDecl, EnumDecl], ...]
    accounts: Tuple[AccountDecl, ...]
    events: Tuple[EventDecl, ...]
    instructions: Tuple[InstructionDecl, ...]


# --- encode / decode expressions ---------------------------------------------


def _type_class(name: str, class_names: Optional[Mapping[str, str]]) -> str:
    return (class_names or {}).get(name) or class_name(name)


def decode_expr(
    node: TypeNode, expr: str, depth: int = 0, class_names: Optional[Mapping[str, str]] = None
) -> str:
    """Python expression converting a decoded borsh value ``expr`` into the bound type."""
    if not contains_defined(node):
        return expr
    if isinstance(node, DefinedType):
        return f"{_type_class(node.name, class_names)}.from_decoded({expr})"
    if isinstance(node, (ArrayType, VecType)):
        item = f"item{depth}"
        return f"[{decode_expr(node.element, item, depth + 1, class_names)} for {item} in {expr}]"
    if isinstance(node, (OptionType, COptionType)):
        return f"(None if {expr} is None else {decode_expr(node.inner, expr, depth + 1, class_names)})"
    return expr


def encode_expr(node: TypeNode, expr: str, depth: int = 0) -> str:
    """Inverse of :func:`decode_expr`: bound value ``expr`` to something the layout can build."""
    if not contains_defined(node):
        return expr
    if isinstance(node, DefinedType):
        return f"{expr}.to_encodable()"
    if isinstance(node, (ArrayType, VecType)):
        item = f"item{depth}"
        return f"[{encode_expr(node.element, item, depth + 1)} for {item} in {expr}]"
    if isinstance(node, (OptionType, COptionType)):
        return f"(None if {expr} is None else {encode_expr(node.inner, expr, depth + 1)})"
    return expr


def member_name(name: str) -> str:
    ident = field_name(name)
    return ident + "_" if ident in RESERVED_MEMBERS else ident


def error_class_name(program_class: str, name: str) -> str:
    cls = program_class + class_name(name)
    return cls if cls.endswith("Error") else cls + "Error"


# --- context building ---------------------------------------------------------


class _Builder:
    def __init__(self, schema: Schema, options: GeneratorOptions):
        self.schema = schema
        self.options = options
        self.known: AbstractSet[str] = schema.type_names()
        self.taken: Set[str] = set(MODULE_NAMES)
        # IDL type name -> emitted class; IDL types claim their names first
        self.class_names: Dict[str, str] = {}
        for definition in schema.types:
            self.type_class(definition.name)

    def claim(self, preferred: str, alternative: str = "") -> str:
        """Reserve a module-level name, falling back to ``alternative`` then a numbered one."""
        name = preferred
        if name in self.taken and alternative:
            name = alternative
        if name in self.taken:
            base, n = name, 2
            while f"{base}{n}" in self.taken:
                n += 1
            name = f"{base}{n}"
        if name != preferred:
            warnings.warn(
                f"{preferred!r} is already bound in the generated module; emitting {name!r} instead",
                SchemaWarning,
                stacklevel=4,
            )
        self.taken.add(name)
        return name

    def type_class(self, name: str) -> str:
        if name not in self.class_names:
            cls = class_name(name)
            self.class_names[name] = self.claim(cls, cls + "Type")
        return self.class_names[name]

    def check(self, node: TypeNode, where: str) -> None:
        for n in walk(node):
            if isinstance(n, DefinedType) and n.name not in self.known:
                warnings.warn(
                    f"{where}: type {n.name!r} is not defined in the IDL; emitting a forward reference",
                    UnresolvedReferenceWarning,
                    stacklevel=4,
                )
                self.type_class(n.name)
            elif isinstance(n, (PrimitiveType, OpaqueType)) and not is_resolved(n):
                shown = n.name if isinstance(n, PrimitiveType) else n.raw
                warnings.warn(
                    f"{where}: unrecognized type {shown}; falling back to typing.Any",
                    UnresolvedReferenceWarning,
                    stacklevel=4,
                )

    def field(self, name: str, node: TypeNode, where: str, source: str) -> FieldDecl:
        self.check(node, where)
        target = resolve(node, self.known, self.class_names)
        member = member_name(name)
        return FieldDecl(
            name=member,
            annotation=target.annotation,
            layout=target.layout,
            decode=decode_expr(node, f"{source}[{member!r}]", class_names=self.class_names),
            encode=encode_expr(node, f"self.{member}"),
        )

    def struct(self, cls: str, idl_name: str, fields: Tuple[Field, ...]) -> StructDecl:
        decls = tuple(self.field(f.name, f.type, f"{idl_name}.{f.name}", "obj") for f in fields)
        return StructDecl(cls, idl_name, decls)

    def enum(self, definition: TypeDefinition) -> EnumDecl:
        cls = self.type_class(definition.name)
        variants = []
        for index, variant in enumerate(definition.variants):
            fields = []
            for position, member in enumerate(variant.fields):
                if isinstance(member, NamedField):
                    name = member.name
                else:
                    name = f"item_{position}"
                where = f"{definition.name}::{variant.name}.{name}"
                fields.append(self.field(name, member.type, where, "val"))
            variant_class = self.claim(cls + class_name(variant.name), cls + "Variant" + class_name(variant.name))
            variants.append(VariantDecl(variant_class, variant.name, index, tuple(fields)))
        return EnumDecl(cls, definition.name, tuple(variants))

    def types(self) -> Tuple[Union[StructDecl, EnumDecl], ...]:
        out: List[Union[StructDecl, EnumDecl]] = []
        for definition in self.schema.types:
            if definition.is_enum:
                out.append(self.enum(definition))
            else:
                out.append(self.struct(self.type_class(definition.name), definition.name, definition.fields))
        return tuple(out)

    def accounts(self) -> Tuple[AccountDecl, ...]:
        out = []
        for account in self.schema.accounts:
            if account.name not in self.known:
                warnings.warn(
                    f"account {account.name!r} has no type definition of the same name",
                    UnresolvedReferenceWarning,
                    stacklevel=3,
                )
            suffix = field_name(account.name)
            decoder = self.claim("decode_" + suffix)
            out.append(
                AccountDecl(
                    idl_name=account.name,
                    class_name=self.type_class(account.name),
                    constant=self.claim(constant_name(account.name) + "_DISCRIMINATOR"),
                    decoder=decoder,
                    encoder=self.claim("encode_" + suffix),
                    fetcher="fetch_" + decoder[len("decode_"):],
                    discriminator=resolve_discriminator(account.discriminator, ACCOUNT_NAMESPACE, account.name),
                    explicit=bool(account.discriminator),
                )
            )
        return tuple(out)

    def events(self) -> Tuple[EventDecl, ...]:
        out = []
        for event in self.schema.events:
            struct = None
            if event.name in self.known:
                cls = self.type_class(event.name)
            elif event.fields:
                cls = self.claim(class_name(event.name), class_name(event.name) + "Event")
                struct = self.struct(cls, event.name, event.fields)
            else:
                cls = class_name(event.name)
            decodable = struct is not None or event.name in self.known
            out.append(
                EventDecl(
                    idl_name=event.name,
                    class_name=cls,
                    constant=self.claim(constant_name(event.name) + "_EVENT_DISCRIMINATOR"),
                    decoder=self.claim(f"decode_{field_name(event.name)}_event") if decodable else "",
                    discriminator=resolve_discriminator(event.discriminator, EVENT_NAMESPACE, event.name),
                    struct=struct,
                    decodable=decodable,
                )
            )
        return tuple(out)

    def instructions(self) -> Tuple[InstructionDecl, ...]:
        out = []
        for ix in self.schema.instructions:
            cls = class_name(ix.name)
            function = self.claim(field_name(ix.name), field_name(ix.name) + "_ix")
            metas = tuple(AccountMetaDecl(member_name(a.name), a.writable, a.signer) for a in ix.accounts)
            args_class = self.claim(cls + "Args", cls + "IxArgs")
            out.append(
                InstructionDecl(
                    idl_name=ix.name,
                    function=function,
                    method=function + "_ix" if function in CLIENT_MEMBERS or function.startswith("fetch_") else function,
                    constant=self.claim(constant_name(ix.name) + "_IX_DISCRIMINATOR"),
                    discriminator=resolve_discriminator(ix.discriminator, INSTRUCTION_NAMESPACE, ix.name),
                    explicit=bool(ix.discriminator),
                    args=self.struct(args_class, ix.name, ix.args),
                    accounts_class=self.claim(cls + "Accounts", cls + "IxAccounts"),
                    accounts=metas,
                )
            )
        return tuple(out)

    def program_id(self) -> str:
        address = self.options.program_id or self.schema.address
        if not address:
            warnings.warn("IDL has no program address; PROGRAM_ID defaults to Pubkey.default()", SchemaWarning, stacklevel=3)
            return ""
        if parse_pubkey(address) is None:
            warnings.warn(f"program address {address!r} is not a valid public key", SchemaWarning, stacklevel=3)
            return ""
        return address

    def errors(self, program_class: str) -> Tuple[ErrorDecl, ...]:
        return tuple(
            ErrorDecl(self.claim(error_class_name(program_class, e.name)), e.code, e.name, e.msg)
            for e in self.schema.errors
        )

    def build(self) -> BindingsContext:
        program_class = class_name(self.schema.name)
        program_id = self.program_id()
        types = self.types()
        error_base = self.claim(program_class + "Error", program_class + "ProgramError")
        errors = self.errors(program_class)
        accounts = self.accounts()
        events = self.events()
        instructions = self.instructions()
        client_name = self.claim(
            py_ident(self.options.client_name) if self.options.client_name else program_class + "Client"
        )
        return BindingsContext(
            program_name=self.schema.name,
            program_class=program_class,
            package=self.options.package or to_snake_case(self.schema.name),
            version=self.schema.version,
            client_name=client_name,
            program_id=program_id,
            error_base=error_base,
            errors=errors,
            types=types,
            accounts=accounts,
            events=events,
            instructions=instructions,
        )


def build_context(schema: Schema, options: GeneratorOptions = GeneratorOptions()) -> BindingsContext:
    return _Builder(schema, options).build()


# --- rendering ----------------------------------------------------------------


def _bytes_expr(data: bytes) -> str:
    return f"bytes([{bytes_literal(data)}])"


def _comment(value: object) -> str:
    # line breaks and other control characters would end or corrupt the comment
    return "".join(ch if ch.isprintable() else " " for ch in str(value))


def create_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("idl_bindgen", "templates"),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["pyrepr"] = repr
    env.filters["bytes_expr"] = _bytes_expr
    env.filters["comment"] = _comment
    return env


def render_context(context: BindingsContext, env: Optional[Environment] = None) -> str:
    env = env or create_environment()
    try:
        return env.get_template(TEMPLATE_NAME).render(ctx=context)
    except TemplateError as e:
        raise RenderError(f"template rendering failed: {e}") from e


def render_bindings(schema: Schema, options: GeneratorOptions = GeneratorOptions()) -> str:
    """Render the unformatted bindings module for ``schema``."""
    return render_context(build_context(schema, options))
