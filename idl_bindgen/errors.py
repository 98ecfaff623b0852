"""Errors and warnings raised while turning an IDL into bindings."""


class IdlBindgenError(Exception):
    """Base class for all generator failures."""


class SchemaParseError(IdlBindgenError):
    """The input is not a well-formed IDL document."""


class RenderError(IdlBindgenError):
    """Rendering or formatting the bindings failed.

    ``source`` keeps the unformatted text, when there is one, so the caller
    can inspect what the template produced.
    """

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class PersistenceError(IdlBindgenError):
    """The generated module could not be written."""


class UnresolvedReferenceWarning(UserWarning):
    """A type reference or shape could not be mapped to a concrete type."""


class SchemaWarning(UserWarning):
    """The IDL is usable but contains something suspicious."""
