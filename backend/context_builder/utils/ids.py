"""ID helpers."""

from __future__ import annotations

import uuid


def new_id(prefix: str) -> str:
    """Random identifier such as ``chk_3f2a...``."""
    return f"{prefix}_{uuid.uuid4().hex}"
