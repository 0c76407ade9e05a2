"""
Deterministic canonical encoding primitives.

Used to serialize the persisted pool records for storage and to commit to
them with a hash. Only the JSON shapes a pool record can produce are
accepted: str-keyed mappings, lists and tuples, integers, booleans, None and
strings made of Unicode scalar values. Anything else is a ``TypeError`` that
names where in the value it was found.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

_SCALARS = (bool, int, type(None))


def _has_surrogate(text: str) -> bool:
    return any(0xD800 <= ord(ch) <= 0xDFFF for ch in text)


def _check_encodable(value: Any, where: str = "$") -> None:
    if isinstance(value, _SCALARS):
        return
    if isinstance(value, str):
        if _has_surrogate(value):
            raise TypeError(f"{where}: lone surrogate in string")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{where}: mapping key {key!r} is not a str")
            if _has_surrogate(key):
                raise TypeError(f"{where}: lone surrogate in mapping key")
            _check_encodable(item, f"{where}.{key}")
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_encodable(item, f"{where}[{i}]")
        return
    raise TypeError(f"{where}: {type(value).__name__} has no canonical encoding")


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing/storage.

    UTF-8, keys sorted, no whitespace between tokens. Floats are refused since
    every persisted amount is an integer.
    """
    _check_encodable(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"pairpool:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"
