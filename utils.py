# utils.py
"""
Shared helpers for the review pipeline.
"""

import re
from typing import Hashable, Iterable, List, Optional, TypeVar

T = TypeVar("T", bound=Hashable)


# ==========================
# String & Formatting Utilities
# ==========================

def truncate_for_name(text: str, max_length: int = 50) -> str:
    """Shorten long requirement text into a display name ending in '...'."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def container_info(container_kind: Optional[str], container_name: Optional[str]) -> str:
    """' in class Foo' for analysis notes; empty when the container is unknown."""
    if not container_kind or not container_name:
        return ""
    return f" in {container_kind} {container_name}"


# ==========================
# Collection Utilities
# ==========================

def unique_in_order(items: Iterable[T]) -> List[T]:
    """Drop repeats, keeping the first occurrence."""
    seen = set()
    out: List[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out
