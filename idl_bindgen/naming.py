import keyword
import re

_SEPARATORS = re.compile(r"[\s_\-]+")


def to_pascal_case(name: str) -> str:
    """``initialize_dapp`` / ``user-account`` / ``userAccount`` -> ``InitializeDapp`` etc."""
    parts = [p for p in _SEPARATORS.split(name.strip()) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def to_snake_case(name: str) -> str:
    out = []
    prev_lower = False
    for ch in name.strip():
        if ch.isalnum():
            if ch.isupper() and prev_lower:
                out.append("_")
            out.append(ch.lower())
            prev_lower = ch.islower() or ch.isdigit()
        else:
            out.append("_")
            prev_lower = False
    return re.sub(r"_+", "_", "".join(out)).strip("_")


def py_ident(name: str) -> str:
    ident = "".join(ch if (ch.isalnum() or ch == "_") else "_" for ch in name.strip())
    if not ident:
        ident = "x"
    if keyword.iskeyword(ident):
        ident += "_"
    if ident[0].isdigit():
        ident = "_" + ident
    return ident


def field_name(name: str) -> str:
    return py_ident(to_snake_case(name))


def class_name(name: str) -> str:
    return py_ident(to_pascal_case(name))


def constant_name(name: str) -> str:
    return py_ident(to_snake_case(name).upper())
