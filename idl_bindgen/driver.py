"""Read an IDL file, render its bindings, and write the resulting module."""

import ast
import re
from pathlib import Path
from typing import Optional, Union

from .emitter import GeneratorOptions, render_bindings
from .errors import PersistenceError, RenderError
from .naming import py_ident, to_snake_case
from .schema import Schema, parse_schema

PathLike = Union[str, Path]

_BLANK_RUNS = re.compile(r"\n{4,}")


def format_source(text: str) -> str:
    """Tidy rendered output and make sure it is valid Python.

    Strips trailing whitespace, caps blank-line runs at two and ends the file
    with a single newline. Raises RenderError (with the raw text attached)
    when the result does not parse.
    """
    lines = [line.rstrip() for line in text.splitlines()]
    tidy = _BLANK_RUNS.sub("\n\n\n", "\n".join(lines)).strip("\n") + "\n"
    try:
        ast.parse(tidy)
    except SyntaxError as e:
        raise RenderError(f"generated code is not valid Python: {e.msg} (line {e.lineno})", source=text) from e
    return tidy


def load_schema(idl_path: PathLike) -> Schema:
    path = Path(idl_path)
    return parse_schema(path.read_bytes(), origin=path)


def module_path(out: PathLike, package: str) -> Path:
    """Where the module goes: ``out`` itself for a ``.py`` path, else under the dotted ``package``."""
    out = Path(out)
    if out.suffix == ".py":
        return out
    parts = [py_ident(p) for p in package.split(".") if p]
    if not parts:
        parts = ["bindings"]
    return out.joinpath(*parts).with_suffix(".py")


def write_module(path: Path, text: str, root: Optional[Path] = None) -> None:
    """Write ``text`` to ``path``, creating directories and, below ``root``, package markers."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if root is not None:
            pkg = path.parent
            while pkg != root and root in pkg.parents:
                (pkg / "__init__.py").touch(exist_ok=True)
                pkg = pkg.parent
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"failed to write {path}: {e}") from e


def render_file(idl_path: PathLike, options: GeneratorOptions = GeneratorOptions()) -> str:
    schema = load_schema(idl_path)
    return format_source(render_bindings(schema, options))


def generate(
    idl_path: PathLike,
    out_path: PathLike,
    package: str = "",
    client_name: str = "",
    program_id: str = "",
    verbose: bool = False,
) -> Path:
    """Generate bindings for ``idl_path`` and write them; returns the module path.

    Nothing is written unless parsing, rendering and formatting all succeed.
    """
    schema = load_schema(idl_path)
    options = GeneratorOptions(package=package, client_name=client_name, program_id=program_id)
    if verbose:
        print(f"Parsed {schema.name}: {len(schema.instructions)} instructions, "
              f"{len(schema.accounts)} accounts, {len(schema.types)} types")

    text = format_source(render_bindings(schema, options))

    out = Path(out_path)
    target = module_path(out, package or to_snake_case(schema.name))
    write_module(target, text, root=None if out.suffix == ".py" else out)
    if verbose:
        print(f"✅ Generated {target} from {idl_path}")
    return target
