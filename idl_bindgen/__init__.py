"""Generate typed Python bindings from Anchor IDL files."""

from .discriminator import account_discriminator, derive, event_discriminator, instruction_discriminator
from .driver import generate
from .emitter import GeneratorOptions, build_context, render_bindings
from .errors import (
    IdlBindgenError,
    PersistenceError,
    RenderError,
    SchemaParseError,
    SchemaWarning,
    UnresolvedReferenceWarning,
)
from .resolver import TargetType, resolve
from .schema import Schema, parse_schema
from .types import decode_enum_field, decode_type

__version__ = "0.1.0"

__all__ = [
    "GeneratorOptions",
    "IdlBindgenError",
    "PersistenceError",
    "RenderError",
    "Schema",
    "SchemaParseError",
    "SchemaWarning",
    "TargetType",
    "UnresolvedReferenceWarning",
    "account_discriminator",
    "build_context",
    "decode_enum_field",
    "decode_type",
    "derive",
    "event_discriminator",
    "generate",
    "instruction_discriminator",
    "parse_schema",
    "render_bindings",
    "resolve",
]
