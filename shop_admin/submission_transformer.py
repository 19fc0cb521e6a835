"""
Submission transformer for shop records.
Turns the edited document into the payload the backend expects.
"""

import copy
import logging
from typing import Dict, Any, List, Tuple

from .caller_manager import GET_NUM_TYPE_KEY, is_temp_id

logger = logging.getLogger(__name__)

BOOKING_KEYS = ("phone", "phone_hint", "url", "url_label")


def parse_caller_input(raw: Any, temp_id: str) -> Tuple[str, str]:
    """
    Split a caller input of the form "businessId | DisplayName".

    Args:
        raw: Value typed into the caller field
        temp_id: Temporary caller id, used when no business id was typed

    Returns:
        Tuple of (business id, display label)
    """
    text = str(raw or "")
    left, _, right = text.partition("|")
    left = left.strip()
    right = right.strip()

    business_id = left or temp_id
    label = right or left
    return business_id, label


def _normalize_booking(booking: Any, booking_enabled: bool) -> Dict[str, str]:
    booking = booking if isinstance(booking, dict) else {}
    if not booking_enabled:
        return {key: "" for key in BOOKING_KEYS}
    return {key: str(booking.get(key) or "") for key in BOOKING_KEYS}


def _business_id_mapping(callers: Dict[str, Any]) -> Tuple[Dict[str, str], Dict[str, Any]]:
    """Map every caller key to its submission key and build the new callers map."""
    id_map: Dict[str, str] = {}
    new_callers: Dict[str, Any] = {}

    for caller_id, raw in callers.items():
        if not is_temp_id(caller_id):
            # Already keyed by business id (fetched record)
            id_map[caller_id] = caller_id
            new_callers[caller_id] = raw
            continue

        business_id, label = parse_caller_input(raw, caller_id)
        if business_id in new_callers:
            logger.warning(f"Duplicate caller business id '{business_id}', later entry wins")
        id_map[caller_id] = business_id
        new_callers[business_id] = label

    return id_map, new_callers


def _rekey(section: Dict[str, Any], id_map: Dict[str, str], keep: Tuple[str, ...] = ()) -> Dict[str, Any]:
    rekeyed: Dict[str, Any] = {}
    for key in keep:
        if key in section:
            rekeyed[key] = section[key]

    for caller_id, config in section.items():
        if caller_id in keep:
            continue
        business_id = id_map.get(caller_id)
        if business_id is None:
            logger.debug(f"[_rekey] Dropping unmapped caller entry {caller_id}")
            continue
        rekeyed[business_id] = config
    return rekeyed


def transform_for_backend(document: Dict[str, Any], booking_enabled: bool) -> Dict[str, Any]:
    """
    Build the backend payload from the edited document.

    The booking block is reduced to its four string leaves (all blank when
    booking is off). Callers created in this session are re-keyed from their
    temporary id to the business id typed by the user, in all three caller
    maps. Entries without a caller are dropped. The input is not mutated.

    Args:
        document: Edited shop record
        booking_enabled: State of the booking toggle

    Returns:
        Payload ready for add/update
    """
    transformed = copy.deepcopy(document)
    shop_data = transformed.setdefault("shop_data", {})

    shop_data["booking"] = _normalize_booking(shop_data.get("booking"), booking_enabled)

    callers = shop_data.get("callers") if isinstance(shop_data.get("callers"), dict) else {}
    id_map, new_callers = _business_id_mapping(callers)

    shop_data["callers"] = new_callers
    shop_data["call_modes"] = _rekey(shop_data.get("call_modes") or {}, id_map)
    shop_data["get_num"] = _rekey(shop_data.get("get_num") or {}, id_map, keep=(GET_NUM_TYPE_KEY,))
    shop_data["isMultiCaller"] = len(new_callers) > 1

    logger.info(f"Transformed submission for shop '{transformed.get('shop_id', '')}' with {len(new_callers)} caller(s)")
    return transformed


def validate_submission(document: Dict[str, Any]) -> List[str]:
    """
    Check the document can be submitted.

    Returns:
        List of user-facing error messages (empty when valid)
    """
    errors = []
    if not str(document.get("shop_id") or "").strip():
        errors.append("請輸入店家ID")
    return errors
