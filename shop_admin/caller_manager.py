"""
Caller collection management for shop records.

A shop owns any number of callers (queueing machines). Each caller lives in
three parallel maps under shop_data, all keyed by the same caller id:

    callers     {id: "businessId | label"}
    call_modes  {id: {...call mode settings...}}
    get_num     {id: {...ticket settings...}, "_type": "caller" | "shop"}

Every function here returns a new document and keeps the three maps in step.
"""

import copy
import re
import uuid
import logging
from typing import Dict, Any, List, Optional, Tuple

logger = logging.getLogger(__name__)

GET_NUM_TYPE_KEY = "_type"

TEMP_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

CALL_MODE_DEFAULTS: Dict[str, Any] = {
    "mode": "sequential",
    "early_call": 0,
    "caller_notes": "",
    "estimate_time": False,
    "expire_num": True,
    "num_interval": 1,
    "password": "",
    "set_params": {"get_num_max": 0},
    "time_period_items": [],
}

GET_NUM_DEFAULTS: Dict[str, Any] = {
    "_external": False,
    "auto_get_num": False,
    "get_num_item_names": [],
    "get_num_item_type": "",
    "get_num_limit": True,
    "get_num_notes": "",
    "pre_order_food": "",
    "reserve_time_limit": 10,
    "support_reserve_num": False,
    "get_num_max": 0,
    "hide_cancel_btn": False,
    "one_time_limit": False,
    "hide_get_num_btn": False,
    "game_start_time": "",
    "guests_per_game": 1,
    "time_per_game": 3,
    "url": "",
    "get_num_btn_name": "線上取號",
}


def generate_temp_id() -> str:
    """Random UUID-v4 string used as a caller key until submission."""
    return str(uuid.uuid4())


def is_temp_id(caller_id: str) -> bool:
    return bool(TEMP_ID_PATTERN.match(caller_id or ""))


def _shop_data(document: Dict[str, Any]) -> Dict[str, Any]:
    shop_data = document.get("shop_data")
    if not isinstance(shop_data, dict):
        shop_data = {}
        document["shop_data"] = shop_data
    for section in ("callers", "call_modes", "get_num"):
        if not isinstance(shop_data.get(section), dict):
            shop_data[section] = {}
    return shop_data


def _refresh_multi_caller(shop_data: Dict[str, Any]) -> None:
    shop_data["isMultiCaller"] = len(shop_data.get("callers") or {}) > 1


def caller_ids(document: Optional[Dict[str, Any]]) -> List[str]:
    """Caller ids in insertion order."""
    callers = ((document or {}).get("shop_data") or {}).get("callers")
    if not isinstance(callers, dict):
        return []
    return list(callers.keys())


def is_multi_caller(document: Optional[Dict[str, Any]]) -> bool:
    return len(caller_ids(document)) > 1


def add_caller(document: Optional[Dict[str, Any]], temp_id: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
    """
    Add a caller with default call mode and ticket settings.

    Args:
        document: Current shop record (not modified)
        temp_id: Caller id to use (a fresh UUID when omitted)

    Returns:
        Tuple of (new document, caller id)
    """
    caller_id = temp_id or generate_temp_id()
    updated = copy.deepcopy(document) if document else {}
    shop_data = _shop_data(updated)

    shop_data["callers"][caller_id] = ""
    shop_data["call_modes"][caller_id] = copy.deepcopy(CALL_MODE_DEFAULTS)
    shop_data["get_num"][caller_id] = copy.deepcopy(GET_NUM_DEFAULTS)
    _refresh_multi_caller(shop_data)

    logger.info(f"Added caller {caller_id} ({len(shop_data['callers'])} total)")
    return updated, caller_id


def remove_caller(document: Optional[Dict[str, Any]], caller_id: str) -> Dict[str, Any]:
    """Remove a caller from all three maps in a single new document."""
    updated = copy.deepcopy(document) if document else {}
    shop_data = _shop_data(updated)

    for section in ("callers", "call_modes", "get_num"):
        shop_data[section].pop(caller_id, None)
    _refresh_multi_caller(shop_data)

    logger.info(f"Removed caller {caller_id} ({len(shop_data['callers'])} remaining)")
    return updated


def next_selection(ids: List[str], selected: Optional[str], removed: str) -> Optional[str]:
    """
    Pick the caller tab to show after a removal.

    Keeps the current selection unless it was the removed caller, in which
    case the first remaining caller (or None) is selected.
    """
    remaining = [caller_id for caller_id in ids if caller_id != removed]
    if selected and selected != removed and selected in remaining:
        return selected
    return remaining[0] if remaining else None


def caller_display_name(document: Optional[Dict[str, Any]], caller_id: str, index: int) -> str:
    """Tab label for a caller: label part, else id part, else a numbered placeholder."""
    callers = ((document or {}).get("shop_data") or {}).get("callers") or {}
    left, _, right = str(callers.get(caller_id) or "").partition("|")

    # Everything after the first separator is the label
    if right.strip():
        return right.strip()
    if left.strip():
        return left.strip()
    return f"叫號機 {index + 1}"
