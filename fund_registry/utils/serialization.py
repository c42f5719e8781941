"""
FundRegistry - Serialization Utilities
========================================
JSON helpers for snapshots, event payloads and CLI output.
"""

import json
from dataclasses import is_dataclass, asdict
from enum import Enum
from typing import Any, Optional
from datetime import datetime

from fund_registry.logging_setup import get_logger

logger = get_logger("utils.serialization")


# ============================================================================
# JSON SERIALIZATION
# ============================================================================

def _default_handler(o: Any) -> Any:
    if isinstance(o, datetime):
        return o.isoformat()
    elif isinstance(o, Enum):
        return o.value
    elif isinstance(o, (set, frozenset)):
        return sorted(o)
    elif hasattr(o, 'to_dict'):
        return o.to_dict()
    elif is_dataclass(o) and not isinstance(o, type):
        return asdict(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def serialize_to_json(obj: Any, indent: Optional[int] = None) -> str:
    """
    Serialize object to JSON string.

    Handles datetime, enums, sets, dataclasses and objects exposing to_dict().

    Args:
        obj: Object to serialize
        indent: JSON indentation (None = compact)

    Returns:
        str: JSON string

    Examples:
        >>> serialize_to_json({"type": EventType.CONTRIBUTION})
        '{"type": "contribution"}'
    """
    try:
        return json.dumps(obj, default=_default_handler, indent=indent, sort_keys=indent is not None)
    except TypeError as e:
        logger.error(f"Serialization failed: {e}")
        raise


def deserialize_from_json(json_str: str) -> Any:
    """
    Deserialize JSON string to Python object.

    Args:
        json_str: JSON string

    Returns:
        Any: Python object
    """
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"Deserialization failed: {e}")
        raise


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "serialize_to_json",
    "deserialize_from_json",
]
