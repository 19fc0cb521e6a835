"""
Nested document helpers for the shop admin console.
Reads and writes values in a shop record addressed by dot-separated paths.
"""

import copy
import logging
from typing import Dict, Any, Optional, List

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "."


def split_path(path: str) -> List[str]:
    """Split a dot path into its segments, ignoring empty ones."""
    if not path:
        return []
    return [segment for segment in path.split(PATH_SEPARATOR) if segment != ""]


def get_nested_value(document: Optional[Dict[str, Any]], path: str) -> Any:
    """
    Resolve a dot path against a nested document.

    Args:
        document: Nested mapping (may be None)
        path: Dot-separated path such as "shop_data.booking.phone"

    Returns:
        The value at the path, or None if any segment is absent
    """
    if not document or not path:
        return None

    current: Any = document
    for segment in split_path(path):
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]
    return current


def set_nested_value(document: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
    """
    Assign a value at a dot path, creating intermediate mappings as needed.

    The document is modified in place and returned for convenience.
    """
    segments = split_path(path)
    if not segments:
        raise ValueError("Cannot set a value at an empty path")

    target = document
    for segment in segments[:-1]:
        child = target.get(segment)
        if not isinstance(child, dict):
            child = {}
            target[segment] = child
        target = child

    target[segments[-1]] = value
    return document


def with_nested_value(document: Optional[Dict[str, Any]], path: str, value: Any) -> Dict[str, Any]:
    """Return a deep copy of the document with the value written at path."""
    updated = copy.deepcopy(document) if document else {}
    set_nested_value(updated, path, value)
    logger.debug(f"[with_nested_value] {path} <- {value!r}")
    return updated
