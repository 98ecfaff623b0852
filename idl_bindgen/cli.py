#!/usr/bin/env python3
"""idl-bindgen command line.

    idl-bindgen --idl target/idl/counter.json --out client/counter.py
    idl-bindgen --idl counter.json --out src --package clients.counter --client Counter
    idl-bindgen --idl counter.json --out client/counter.py --check
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .driver import format_source, generate, load_schema, module_path
from .emitter import GeneratorOptions, render_bindings
from .errors import IdlBindgenError, RenderError
from .naming import to_snake_case


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idl-bindgen",
        description="Generate typed Python bindings from an Anchor IDL",
    )
    parser.add_argument("--idl", type=Path, required=True, help="Path to the IDL JSON file")
    parser.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Output .py file, or a root directory the --package path is created under",
    )
    parser.add_argument("--package", default="", help="Dotted module name (default: program name)")
    parser.add_argument("--client", default="", help="Client class name (default: <Program>Client)")
    parser.add_argument("--program-id", default="", help="Program address overriding the IDL's")
    parser.add_argument("--check", action="store_true", help="Check the output is up to date, write nothing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def check(args: argparse.Namespace) -> int:
    options = GeneratorOptions(package=args.package, client_name=args.client, program_id=args.program_id)
    schema = load_schema(args.idl)
    rendered = format_source(render_bindings(schema, options))
    package = args.package or to_snake_case(schema.name)
    target = module_path(args.out, package)
    if not target.exists():
        print(f"{target} is missing (run idl-bindgen)", file=sys.stderr)
        return 1
    if target.read_text(encoding="utf-8") != rendered:
        print(f"{target} is out of date (run idl-bindgen)", file=sys.stderr)
        return 1
    print(f"up-to-date: {target}")
    return 0


def run(args: argparse.Namespace) -> int:
    if not args.idl.exists():
        print(f"error: IDL file does not exist: {args.idl}", file=sys.stderr)
        return 1
    try:
        if args.check:
            return check(args)
        generate(
            args.idl,
            args.out,
            package=args.package,
            client_name=args.client,
            program_id=args.program_id,
            verbose=args.verbose,
        )
    except RenderError as e:
        print(f"error: {e}", file=sys.stderr)
        if args.verbose and e.source:
            print(f"raw output:\n{e.source}", file=sys.stderr)
        return 1
    except (IdlBindgenError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    return run(build_arg_parser().parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
