"""
Line item metadata documents.

Module-specific fields (contact details, rider notes, attachment references)
travel with a line item as a JSON document stored in a text column.  Stored
content may be malformed; readers get an empty document instead of an
error so that a corrupt blob never blocks cost computation.
"""

import json
from typing import Any, Mapping

from costing_kernel.logging_config import get_logger

logger = get_logger("domain.metadata")


def parse_metadata(raw: str | None) -> dict[str, Any]:
    """
    Parse a stored metadata document.

    Returns ``{}`` for null, empty, unparseable, or non-object content.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning(
            "metadata_parse_failed",
            extra={"error": str(exc), "raw_length": len(raw)},
        )
        return {}
    if not isinstance(parsed, dict):
        logger.warning(
            "metadata_not_an_object",
            extra={"json_type": type(parsed).__name__},
        )
        return {}
    return parsed


def serialize_metadata(document: Mapping[str, Any] | None) -> str | None:
    """Serialize a metadata mapping for storage; ``None`` stays ``None``."""
    if document is None:
        return None
    return json.dumps(dict(document), sort_keys=True, default=str)
