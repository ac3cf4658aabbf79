"""
Utilities for generating collision-free names for temporary resources.
"""
import re
import uuid

_INVALID = re.compile(r"[^a-z0-9_.-]+")


def unique_name(prefix: str) -> str:
    """
    Returns ``<prefix>-<8 hex chars>``, safe to use as a container or image name.
    """
    base = _INVALID.sub("-", prefix.lower()).strip("-.") or "pgimage"
    return f"{base}-{uuid.uuid4().hex[:8]}"
