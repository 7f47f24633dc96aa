"""Nested record flattening transform.

This module converts nested mappings into single-level records whose
keys join the path segments with a double underscore.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from core.constants import FLATTEN_KEY_SEPARATOR
from core.types import Record
from transforms.record_tree import ObjectNode, classify


def flatten_record(record: Mapping[str, Any]) -> Record:
    """Flatten a nested record into compound keys.

    Mapping values are expanded recursively; lists and scalars are kept as
    leaf values. When two paths encode to the same key, the value from the
    shallower path wins regardless of key order.

    Args:
        record: Nested record mapping.

    Returns:
        New flat record; the input is not modified.
    """
    flat: Record = {}
    depths: dict[str, int] = {}
    for key, depth, value in _iter_leaves(record, None, 0):
        if key in depths and depths[key] <= depth:
            continue
        flat[key] = value
        depths[key] = depth
    return flat


def _iter_leaves(
    node: Mapping[str, Any],
    prefix: str | None,
    depth: int,
) -> Iterator[tuple[str, int, Any]]:
    for key, value in node.items():
        flat_key = key if prefix is None else f"{prefix}{FLATTEN_KEY_SEPARATOR}{key}"
        classified = classify(value)
        if isinstance(classified, ObjectNode):
            yield from _iter_leaves(classified.fields, flat_key, depth + 1)
        else:
            yield flat_key, depth, value
