"""
Content Fingerprinter

Derives the cache key for an analysis request from its files and engine
arguments. The key addresses the result cache only; it is not a security
boundary.

Each file's content is reduced to a full SHA-256 digest instead of a short
prefix of an encoded form, so two large files that share a prefix never
produce the same key. Every field is length-prefixed before it enters the
outer digest, which keeps ("ab", "c") and ("a", "bc") apart.
"""

import hashlib
from typing import Mapping, Sequence


def _frame(value: str) -> bytes:
    data = value.encode("utf-8")
    return len(data).to_bytes(8, "big") + data


def content_digest(content: str) -> str:
    """Full SHA-256 of a single file's content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def fingerprint(
    files: Mapping[str, str],
    extra_args: Sequence[str] = (),
    namespace: str = "",
) -> str:
    """
    Compute a deterministic key for (files, extra_args).

    Args:
        files: Mapping of relative path to content
        extra_args: Engine arguments; order is significant
        namespace: Engine name, so engines never share entries

    Returns:
        64-character hex digest
    """
    outer = hashlib.sha256()
    outer.update(_frame(namespace))

    outer.update(len(files).to_bytes(8, "big"))
    for path in sorted(files):
        outer.update(_frame(path))
        outer.update(_frame(content_digest(files[path])))

    outer.update(len(extra_args).to_bytes(8, "big"))
    for arg in extra_args:
        outer.update(_frame(arg))

    return outer.hexdigest()
