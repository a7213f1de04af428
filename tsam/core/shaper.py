"""
Folding of flat response items into the nested response object.

A response key `a.b.c` with value v ends up as {"a": {"b": {"c": v}}};
keys sharing a prefix are merged into the same parent object.
"""

import json
from typing import Any, Dict, Iterable, Mapping, Tuple

from .errors import ResponseShapeError, SerializationError


class _Branch(dict):
    """Object created by the fold, as opposed to a dict-valued leaf."""


def reduce_to_map(key: str, value: Any, into: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold one dotted key into the accumulator.

    Exact duplicate keys overwrite. A key that needs an existing leaf to
    be an object, or an existing object to be a leaf, is rejected.

    Args:
        key: Dotted response key
        value: Leaf value
        into: Accumulator owned by the caller

    Returns:
        The accumulator

    Raises:
        ResponseShapeError: On a leaf/object collision
    """
    bits = key.split(".")
    node = into
    for depth, bit in enumerate(bits[:-1]):
        child = node.get(bit)
        if child is None and bit not in node:
            child = _Branch()
            node[bit] = child
        elif not isinstance(child, _Branch):
            raise ResponseShapeError(
                f"Response key '{key}' conflicts with the value at "
                f"'{'.'.join(bits[:depth + 1])}'."
            )
        node = child

    leaf = bits[-1]
    if isinstance(node.get(leaf), _Branch):
        raise ResponseShapeError(
            f"Response key '{key}' conflicts with the object at '{key}'."
        )
    node[leaf] = value
    return into


def fold_response_items(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Fold (dotted key, value) pairs into a nested plain dict."""
    tree: Dict[str, Any] = _Branch()
    for key, value in items:
        reduce_to_map(key, value, tree)
    return _to_plain(tree)


def _to_plain(node: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        k: _to_plain(v) if isinstance(v, _Branch) else v
        for k, v in node.items()
    }


def serialize_response(data: Dict[str, Any]) -> str:
    """
    Serialize the nested response object to compact JSON with sorted keys.

    Raises:
        SerializationError: If a value cannot be encoded
    """
    try:
        return json.dumps(data, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Error while serializing response data. Reason: '{e}'."
        )
