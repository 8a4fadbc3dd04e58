"""
Parameter flattening.

Converts a nested parameter structure into an ordered list of Pairs with
bracketed keys: ``{"a": {"b": 1, "c": [2, 3]}}`` becomes
``a[b]=1``, ``a[c][]=2``, ``a[c][]=3``.
"""
from collections.abc import Mapping
from typing import Any, List, Optional

from ..types import Pair
from ..upload import Upload


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def flatten(param: Any, parent_key: Optional[str] = None) -> List[Pair]:
    """Flatten ``param`` into Pairs in traversal order.

    Mapping entries compose ``parent[key]`` (or ``key`` at the top level).
    Sequence elements compose ``parent[]``; without a parent key they stay
    keyless. Uploads are emitted as-is, without reading their bytes. Any other
    value is stringified with ``str()``.
    """
    if isinstance(param, Mapping):
        pairs: List[Pair] = []
        for key, value in param.items():
            nested_key = f"{parent_key}[{key}]" if parent_key is not None else str(key)
            pairs.extend(flatten(value, nested_key))
        return pairs

    if _is_sequence(param):
        # Keyless top-level sequences lose their brackets
        nested_key = f"{parent_key}[]" if parent_key is not None else None
        pairs = []
        for value in param:
            pairs.extend(flatten(value, nested_key))
        return pairs

    if isinstance(param, Upload):
        return [Pair(key=parent_key, value=param)]

    return [Pair(key=parent_key, value=param if isinstance(param, str) else str(param))]


def contains_upload(param: Any) -> bool:
    """True if an Upload appears anywhere in the structure."""
    if isinstance(param, Upload):
        return True
    if isinstance(param, Mapping):
        return any(contains_upload(value) for value in param.values())
    if _is_sequence(param):
        return any(contains_upload(value) for value in param)
    return False
