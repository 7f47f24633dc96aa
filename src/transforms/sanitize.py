"""Record field sanitization.

The sink assigns its own node ids, so the CMS ``id`` is moved aside to
``_directusID`` and null fields are dropped before commit.
"""

from __future__ import annotations

from core.constants import DIRECTUS_ID_FIELD, SOURCE_ID_FIELD
from core.types import Record


def sanitize_fields(record: Record) -> Record:
    """Delete fields whose value is None, in place.

    Args:
        record: Record to clean.

    Returns:
        The same record; falsy values such as 0, "" and False are kept.
    """
    for key in [key for key, value in record.items() if value is None]:
        del record[key]
    return record


def sanitize_item(record: Record) -> Record:
    """Remap the CMS id field, then drop null fields.

    Args:
        record: Record to clean.

    Returns:
        The same record with ``id`` moved to ``_directusID``.
    """
    if record.get(SOURCE_ID_FIELD) is not None:
        record[DIRECTUS_ID_FIELD] = record.pop(SOURCE_ID_FIELD)
    return sanitize_fields(record)
