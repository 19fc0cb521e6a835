"""
Unit tests for session state management.
"""

from types import SimpleNamespace

import pytest

import shop_admin.session_manager as session_manager
from shop_admin.session_manager import SessionManager, blank_record, booking_configured


@pytest.fixture
def state(monkeypatch):
    session_state = {}
    monkeypatch.setattr(session_manager, "st", SimpleNamespace(session_state=session_state))
    SessionManager.initialize(dev_mode=True, default_shop_id="tawe_zz001")
    return session_state


def _record():
    return {
        "shop_id": "s1",
        "shop_data": {
            "name": "Clinic",
            "booking": {"phone": "02-1234", "url": ""},
            "callers": {"room01": "一診", "room02": "二診"},
        },
    }


class TestInitialize:
    """Test cases for SessionManager.initialize."""

    def test_defaults(self, state):
        assert state["current_page"] == "search"
        assert state["shop_id_input"] == "tawe_zz001"
        assert state["document"] is None
        assert state["form_version"] == 0
        assert SessionManager.is_dev_mode() is True

    def test_existing_values_kept(self, state):
        state["current_page"] = "create"
        SessionManager.initialize(dev_mode=False)
        assert state["current_page"] == "create"
        assert state["dev_mode"] is True


class TestLoadRecord:
    """Test cases for load_record, reset_form and clear_record."""

    def test_load_record_derives_state(self, state):
        SessionManager.load_record(_record())

        assert SessionManager.get_caller_ids() == ["room01", "room02"]
        assert SessionManager.get_selected_caller() == "room01"
        assert SessionManager.is_booking_enabled() is True
        assert SessionManager.get_form_version() == 1
        assert not SessionManager.has_unsaved_changes()

    def test_working_copy_is_independent(self, state):
        record = _record()
        SessionManager.load_record(record)

        SessionManager.get_document()["shop_data"]["name"] = "Dental"

        assert SessionManager.get_original_document()["shop_data"]["name"] == "Clinic"
        assert record["shop_data"]["name"] == "Clinic"
        assert SessionManager.has_unsaved_changes()

    def test_booking_off_when_empty(self, state):
        record = _record()
        record["shop_data"]["booking"] = {"phone": " ", "url": ""}

        SessionManager.load_record(record)

        assert SessionManager.is_booking_enabled() is False

    def test_set_document_keeps_valid_selection(self, state):
        SessionManager.load_record(_record())
        SessionManager.set_selected_caller("room02")

        document = SessionManager.get_document()
        SessionManager.set_document(document)
        assert SessionManager.get_selected_caller() == "room02"

        del document["shop_data"]["callers"]["room02"]
        SessionManager.set_document(document)
        assert SessionManager.get_selected_caller() == "room01"

    def test_reset_form(self, state):
        SessionManager.load_record(_record())
        SessionManager.reset_form()

        assert SessionManager.get_document() == blank_record()
        assert SessionManager.get_caller_ids() == []
        assert SessionManager.get_selected_caller() is None
        assert SessionManager.get_form_version() == 2

    def test_clear_record(self, state):
        SessionManager.load_record(_record())
        SessionManager.clear_record()

        assert SessionManager.get_document() is None
        assert SessionManager.get_original_document() is None
        assert SessionManager.is_booking_enabled() is False


class TestPageTransitions:
    """Test cases for set_current_page."""

    def test_switch_clears_record(self, state):
        SessionManager.load_record(_record())
        SessionManager.set_current_page("create")

        assert SessionManager.get_current_page() == "create"
        assert SessionManager.get_document() is None

    def test_same_page_keeps_record(self, state):
        SessionManager.load_record(_record())
        SessionManager.set_current_page("search")

        assert SessionManager.get_document() is not None

    def test_unknown_page(self, state):
        with pytest.raises(ValueError):
            SessionManager.set_current_page("audit")


class TestBookingConfigured:
    """Test cases for booking_configured."""

    def test_url_only(self):
        assert booking_configured({"shop_data": {"booking": {"url": "https://x"}}})

    def test_missing(self):
        assert not booking_configured({"shop_data": {}})
        assert not booking_configured(None)


class TestSessionInfo:
    """Test cases for get_session_info."""

    def test_info(self, state):
        SessionManager.load_record(_record())
        info = SessionManager.get_session_info()

        assert info["shop_id"] == "s1"
        assert info["caller_count"] == 2
        assert info["unsaved_changes"] is False
