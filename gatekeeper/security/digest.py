from __future__ import annotations

import hashlib
import re

from cryptography.hazmat.primitives import constant_time

_HEX64_RE = re.compile(r"[0-9a-fA-F]{64}")


def digest_hex(text: str) -> str:
    """SHA-256 of the UTF-8 bytes of ``text`` as 64 lowercase hex chars."""
    return hashlib.sha256((text or "").encode("utf-8")).hexdigest()


def is_hex64(s: str) -> bool:
    return isinstance(s, str) and len(s) == 64 and _HEX64_RE.fullmatch(s) is not None


def constant_time_equals(a: str, b: str) -> bool:
    """
    Compare two strings without leaking the first mismatching position.
    Different lengths return False immediately; equal lengths are always
    scanned to the end.
    """
    if a is None or b is None or len(a) != len(b):
        return False
    return constant_time.bytes_eq(a.encode("utf-8"), b.encode("utf-8"))


def normalize_code(submitted: str) -> str:
    """
    Admin codes may be typed as the raw phrase or as its precomputed digest.
    A 64-char hex string is taken literally (lower-cased), anything else is
    digested first.
    """
    if is_hex64(submitted):
        return submitted.lower()
    return digest_hex(submitted)


def matches_digest(candidate_hex: str, configured_hex: str) -> bool:
    # empty digest never matches
    if not configured_hex:
        return False
    return constant_time_equals(candidate_hex, configured_hex.strip().lower())
