from __future__ import annotations

import os
import uuid

CLIENT_ID_SUFFIX_LEN = 6


def generate_client_id(prefix: str) -> str:
    """Return ``prefix`` plus a random hex suffix.

    The broker drops an existing session when a second one connects with the
    same identifier, so every running controller needs its own.
    """
    return f"{prefix}{uuid.uuid4().hex[:CLIENT_ID_SUFFIX_LEN]}"


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default`` when unset or malformed."""
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default
