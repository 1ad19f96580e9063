import json
import logging
from typing import Any, List

from .errors import UpstreamError, is_blank

logger = logging.getLogger(__name__)

# (stringified source field, parsed sibling field)
NESTED_JSON_FIELDS = (
    ("contractDetailsJSON", "contractDetails"),
    ("orderNoteAttributes", "orderNoteAttributesParsed"),
    ("lastSuccessfulOrder", "lastSuccessfulOrderParsed"),
)


def unpack_item(item: dict) -> dict:
    """Decode the JSON-string fields of one contract-details item in place.

    A field that fails to decode gets a ``None`` sibling; the item is still
    returned.
    """
    for source, target in NESTED_JSON_FIELDS:
        raw = item.get(source)
        if is_blank(raw):
            continue
        # bare numbers and booleans decode to themselves
        if isinstance(raw, (bool, int, float)):
            raw = json.dumps(raw)
        try:
            item[target] = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to parse %s: %s", source, e)
            item[target] = None
    return item


def unpack_contract_details(data: Any) -> List[Any]:
    if not isinstance(data, list):
        raise UpstreamError(f"Expected a list of contract details, got {type(data).__name__}")
    return [unpack_item(item) if isinstance(item, dict) else item for item in data]
