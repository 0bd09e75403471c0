"""
gitledger_core.utils
--------------------
Small helpers for timestamps, key text decoding and path handling.
"""

from __future__ import annotations
import os, time
from .errors import EncodingError


def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def to_text(raw: bytes, what: str = "key") -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"stored {what} is not valid UTF-8 text: {e}") from e


def expand(path: str) -> str:
    return os.path.abspath(os.path.expanduser(path))
