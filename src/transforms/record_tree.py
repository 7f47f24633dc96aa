"""Tagged view over nested CMS record values.

Record values are classified into four variants so traversal code can
branch explicitly: scalars and arrays are leaves for flattening, objects
are expanded, and asset references are resolved by the asset scanner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, MutableMapping, Union

from core.types import AssetReference

AssetFilter = Callable[[AssetReference], bool]


@dataclass(frozen=True)
class Scalar:
    """Leaf value: string, number, bool, or None."""

    value: object


@dataclass(frozen=True)
class ArrayNode:
    """List value, opaque unless a traversal opts into its elements."""

    items: list[Any]


@dataclass(frozen=True)
class ObjectNode:
    """Nested mapping value."""

    fields: MutableMapping[str, Any]


@dataclass(frozen=True)
class AssetNode:
    """Mapping recognized as a downloadable asset reference."""

    reference: AssetReference
    fields: MutableMapping[str, Any]


RecordNode = Union[Scalar, ArrayNode, ObjectNode, AssetNode]


def classify(value: object, asset_filter: AssetFilter | None = None) -> RecordNode:
    """Classify one record value.

    Args:
        value: Raw record value.
        asset_filter: When given, mappings shaped like asset references that
            pass the filter classify as ``AssetNode``. Without a filter no
            value is treated as an asset.

    Returns:
        Tagged record node.
    """
    if isinstance(value, list):
        return ArrayNode(items=value)
    if isinstance(value, Mapping):
        fields = value if isinstance(value, MutableMapping) else dict(value)
        if asset_filter is not None:
            reference = AssetReference.from_value(fields)
            if reference is not None and asset_filter(reference):
                return AssetNode(reference=reference, fields=fields)
        return ObjectNode(fields=fields)
    return Scalar(value=value)
