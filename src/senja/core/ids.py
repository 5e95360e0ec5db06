"""Record id generation.

Ids are ``<prefix>_<epoch ms>_<base36 suffix>``. Uniqueness is
probabilistic: two ids generated in the same millisecond only differ by
their random suffix.
"""

from __future__ import annotations

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_id(prefix: str) -> str:
    """Generate an id for a single record.

    Example:
        >>> generate_id("std")  # doctest: +SKIP
        'std_1760791234567_k3x9q'
    """
    return f"{prefix}_{_now_ms()}_{_random_suffix(5)}"


def generate_bulk_id(prefix: str, index: int) -> str:
    """Generate an id for the ``index``-th record of a bulk import."""
    return f"{prefix}_{_now_ms()}_{index}_{_random_suffix(4)}"
