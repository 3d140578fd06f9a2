"""
JSON Utilities
==============

orjson-backed JSON helpers used by the serialization adapters.

orjson produces compact output (``[1,2,3]``, no spaces), which keeps signed
tokens short and matches the separators other itsdangerous implementations
use, and handles datetime objects natively.
"""

import logging
from typing import Any, Callable, Optional, Union

import orjson

logger = logging.getLogger(__name__)


def dumps(obj: Any, sort_keys: bool = False, default: Optional[Callable] = None) -> bytes:
    """
    Serialize an object to compact JSON bytes.

    Args:
        obj: Object to serialize
        sort_keys: Whether to sort dictionary keys (for deterministic tokens)
        default: Function to handle types orjson does not support natively

    Returns:
        UTF-8 encoded JSON
    """
    option = orjson.OPT_NON_STR_KEYS
    if sort_keys:
        option |= orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, option=option, default=default)


def loads(data: Union[str, bytes]) -> Any:
    """Deserialize JSON text or bytes."""
    return orjson.loads(data)
