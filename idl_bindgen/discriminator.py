#!/usr/bin/env python3
import hashlib
import sys
from typing import Iterable, Optional

DISCRIMINATOR_SIZE = 8

ACCOUNT_NAMESPACE = "account"
INSTRUCTION_NAMESPACE = "global"
EVENT_NAMESPACE = "event"


def normalize_account_name(name: str) -> str:
    """``UserAccount`` -> ``user_account``: underscore before every non-leading capital."""
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0:
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def derive(namespace: str, name: str) -> bytes:
    """
    Compute the 8-byte discriminator for ``name`` in ``namespace``.
    First 8 bytes of the SHA-256 hash of "<namespace>:<name>"; account names
    are normalized first, nothing else is.
    """
    if namespace == ACCOUNT_NAMESPACE:
        name = normalize_account_name(name)
    data = f"{namespace}:{name}".encode("utf-8")
    hash_bytes = hashlib.sha256(data).digest()
    return hash_bytes[:DISCRIMINATOR_SIZE]


def account_discriminator(account_name: str) -> bytes:
    return derive(ACCOUNT_NAMESPACE, account_name)


def instruction_discriminator(instruction_name: str) -> bytes:
    return derive(INSTRUCTION_NAMESPACE, instruction_name)


def event_discriminator(event_name: str) -> bytes:
    return derive(EVENT_NAMESPACE, event_name)


def resolve_discriminator(explicit: Optional[bytes], namespace: str, name: str) -> bytes:
    """Explicit bytes from the IDL win, whatever their length; derive only when absent."""
    if explicit:
        return bytes(explicit)
    return derive(namespace, name)


def bytes_literal(data: Iterable[int]) -> str:
    return ", ".join(f"0x{b:02x}" for b in data)


if __name__ == '__main__':
    # usage: discriminator.py <namespace> <name> [<name> ...]
    if len(sys.argv) < 3:
        raise SystemExit("usage: discriminator.py <account|global|event> <name> [<name> ...]")
    namespace = sys.argv[1]
    width = max(len(n) for n in sys.argv[2:])
    for name in sys.argv[2:]:
        print(f"{name:<{width}}  {derive(namespace, name).hex()}")
