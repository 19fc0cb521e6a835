"""
Session state management for the shop admin console.
Holds the record being edited, UI toggles and in-progress flags across reruns.
"""

import copy
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

import streamlit as st

from .caller_manager import caller_ids as document_caller_ids
from .nested_document import get_nested_value

logger = logging.getLogger(__name__)

# Default values
DEFAULT_PAGE = "search"
PAGES = ("search", "create")


def blank_record() -> Dict[str, Any]:
    """A new shop record with every known section present and no callers."""
    return {
        "shop_id": "",
        "shop_data": {
            "active": True,
            "isMultiCaller": False,
            "name": "",
            "address": "",
            "phone": "",
            "pinyin": "",
            "vendor_id": "",
            "zone": "",
            "id": "",
            "booking": {
                "phone": "",
                "phone_hint": "",
                "url": "",
                "url_label": "",
            },
            "callers": {},
            "call_modes": {},
            "get_num": {"_type": "caller"},
            "google_map": {
                "address": "",
                "comment_num": 0,
                "coordinate": {"x": 0, "y": 0},
                "name": "",
                "star_num": 0,
            },
        },
    }


def booking_configured(document: Optional[Dict[str, Any]]) -> bool:
    """Booking counts as enabled when a booking phone or url is set."""
    phone = get_nested_value(document, "shop_data.booking.phone")
    url = get_nested_value(document, "shop_data.booking.url")
    return bool(str(phone or "").strip() or str(url or "").strip())


class SessionManager:
    """Manages Streamlit session state for the shop admin console."""

    @staticmethod
    def initialize(dev_mode: bool = True, default_shop_id: str = ""):
        """Initialize all session state variables with default values."""
        defaults = {
            'current_page': DEFAULT_PAGE,
            'dev_mode': dev_mode,
            'shop_id_input': default_shop_id,
            'document': None,
            'original_document': None,
            'booking_enabled': False,
            'caller_ids': [],
            'selected_caller': None,
            'is_loading': False,
            'is_submitting': False,
            'schema_fields': [],
            'form_version': 0,
            'last_activity': datetime.now(),
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

        logger.debug("Session initialized")

    @staticmethod
    def get_current_page() -> str:
        return st.session_state.get('current_page', DEFAULT_PAGE)

    @staticmethod
    def set_current_page(page: str):
        """Switch view; each view starts from a clean form."""
        if page not in PAGES:
            raise ValueError(f"Unknown page: {page}")

        old_page = st.session_state.get('current_page')
        if old_page != page:
            logger.info(f"Page transition: {old_page} -> {page}")
            st.session_state['current_page'] = page
            SessionManager.clear_record()

    @staticmethod
    def is_dev_mode() -> bool:
        return bool(st.session_state.get('dev_mode', False))

    @staticmethod
    def set_dev_mode(enabled: bool):
        if enabled != st.session_state.get('dev_mode'):
            logger.info(f"Dev mode {'enabled' if enabled else 'disabled'}")
        st.session_state['dev_mode'] = bool(enabled)

    @staticmethod
    def get_shop_id_input() -> str:
        return st.session_state.get('shop_id_input', '')

    @staticmethod
    def get_document() -> Optional[Dict[str, Any]]:
        """Get the record being edited (None before a search)."""
        return st.session_state.get('document')

    @staticmethod
    def set_document(document: Dict[str, Any]):
        """Replace the record being edited and resync the caller list."""
        st.session_state['document'] = document

        ids = document_caller_ids(document)
        st.session_state['caller_ids'] = ids
        if st.session_state.get('selected_caller') not in ids:
            st.session_state['selected_caller'] = ids[0] if ids else None
        SessionManager.update_activity()

    @staticmethod
    def get_original_document() -> Optional[Dict[str, Any]]:
        return st.session_state.get('original_document')

    @staticmethod
    def has_unsaved_changes() -> bool:
        return SessionManager.get_document() != SessionManager.get_original_document()

    @staticmethod
    def load_record(document: Dict[str, Any]):
        """
        Install a fetched record as both working copy and baseline.

        Caller ids, the selected caller and the booking toggle are derived
        from the record; widget keys are refreshed.
        """
        st.session_state['original_document'] = copy.deepcopy(document)
        st.session_state['selected_caller'] = None
        SessionManager.set_document(copy.deepcopy(document))
        st.session_state['booking_enabled'] = booking_configured(document)
        SessionManager.bump_form_version()
        logger.info(f"Loaded record '{document.get('shop_id', '')}' with {len(st.session_state['caller_ids'])} caller(s)")

    @staticmethod
    def reset_form():
        """Restore a blank record for the create view."""
        SessionManager.load_record(blank_record())

    @staticmethod
    def clear_record():
        """Drop the working record, e.g. when switching views."""
        st.session_state['document'] = None
        st.session_state['original_document'] = None
        st.session_state['caller_ids'] = []
        st.session_state['selected_caller'] = None
        st.session_state['booking_enabled'] = False
        SessionManager.bump_form_version()

    @staticmethod
    def is_booking_enabled() -> bool:
        return bool(st.session_state.get('booking_enabled', False))

    @staticmethod
    def set_booking_enabled(enabled: bool):
        st.session_state['booking_enabled'] = bool(enabled)

    @staticmethod
    def get_caller_ids() -> List[str]:
        return list(st.session_state.get('caller_ids', []))

    @staticmethod
    def get_selected_caller() -> Optional[str]:
        return st.session_state.get('selected_caller')

    @staticmethod
    def set_selected_caller(caller_id: Optional[str]):
        st.session_state['selected_caller'] = caller_id

    @staticmethod
    def is_loading() -> bool:
        return bool(st.session_state.get('is_loading', False))

    @staticmethod
    def set_loading(value: bool):
        st.session_state['is_loading'] = bool(value)

    @staticmethod
    def is_submitting() -> bool:
        return bool(st.session_state.get('is_submitting', False))

    @staticmethod
    def set_submitting(value: bool):
        st.session_state['is_submitting'] = bool(value)

    @staticmethod
    def get_schema_fields() -> list:
        return st.session_state.get('schema_fields', [])

    @staticmethod
    def set_schema_fields(descriptors: list):
        st.session_state['schema_fields'] = descriptors

    @staticmethod
    def get_form_version() -> int:
        """Counter mixed into widget keys so a new record gets fresh widgets."""
        return st.session_state.get('form_version', 0)

    @staticmethod
    def bump_form_version():
        st.session_state['form_version'] = SessionManager.get_form_version() + 1

    @staticmethod
    def update_activity():
        st.session_state['last_activity'] = datetime.now()

    @staticmethod
    def get_session_info() -> Dict[str, Any]:
        """Get session information for debugging."""
        document = SessionManager.get_document() or {}
        return {
            'current_page': SessionManager.get_current_page(),
            'dev_mode': SessionManager.is_dev_mode(),
            'shop_id': document.get('shop_id'),
            'caller_count': len(SessionManager.get_caller_ids()),
            'booking_enabled': SessionManager.is_booking_enabled(),
            'unsaved_changes': SessionManager.has_unsaved_changes(),
            'schema_fields': len(SessionManager.get_schema_fields()),
        }

