"""
Unit tests for the submission transformer.
"""

import copy

import pytest

from shop_admin.caller_manager import add_caller
from shop_admin.session_manager import blank_record
from shop_admin.submission_transformer import parse_caller_input, transform_for_backend, validate_submission

TEMP_A = "2f1b7c0e-8d3a-4c5b-9e6f-0a1b2c3d4e5f"
TEMP_B = "7a9e3d21-5b4c-4f6a-8b7c-1d2e3f4a5b6c"


class TestParseCallerInput:
    """Test cases for parse_caller_input."""

    @pytest.mark.parametrize("raw,expected", [
        ("biz01 | Ultrasound", ("biz01", "Ultrasound")),
        ("biz01", ("biz01", "biz01")),
        ("  biz01  |  ", ("biz01", "biz01")),
        ("biz01 | a | b", ("biz01", "a | b")),
        ("", (TEMP_A, "")),
        (None, (TEMP_A, "")),
    ])
    def test_parse(self, raw, expected):
        assert parse_caller_input(raw, TEMP_A) == expected

    def test_missing_business_id_keeps_label(self):
        assert parse_caller_input(" | Lobby", TEMP_A) == (TEMP_A, "Lobby")

    def test_label_keeps_text_after_first_separator(self):
        business_id, label = parse_caller_input("biz01 | Room 1 | east wing", TEMP_A)
        assert business_id == "biz01"
        assert label == "Room 1 | east wing"


class TestTransformForBackend:
    """Test cases for transform_for_backend."""

    def setup_method(self):
        document = blank_record()
        document["shop_id"] = "shop01"
        document, _ = add_caller(document, temp_id=TEMP_A)
        document, _ = add_caller(document, temp_id=TEMP_B)
        document["shop_data"]["callers"][TEMP_A] = "biz01 | Ultrasound"
        document["shop_data"]["callers"][TEMP_B] = ""
        document["shop_data"]["call_modes"][TEMP_A]["mode"] = "random"
        document["shop_data"]["booking"] = {"phone": "02-1234", "phone_hint": "call", "url": "", "url_label": ""}
        self.document = document

    def test_booking_off_blanks_all_leaves(self):
        result = transform_for_backend(self.document, booking_enabled=False)
        assert result["shop_data"]["booking"] == {"phone": "", "phone_hint": "", "url": "", "url_label": ""}

    def test_booking_on_keeps_values(self):
        result = transform_for_backend(self.document, booking_enabled=True)
        assert result["shop_data"]["booking"] == {"phone": "02-1234", "phone_hint": "call", "url": "", "url_label": ""}

    def test_booking_missing_is_normalized(self):
        del self.document["shop_data"]["booking"]
        result = transform_for_backend(self.document, booking_enabled=True)
        assert result["shop_data"]["booking"] == {"phone": "", "phone_hint": "", "url": "", "url_label": ""}

    def test_callers_rekeyed_by_business_id(self):
        result = transform_for_backend(self.document, booking_enabled=False)
        shop_data = result["shop_data"]

        assert shop_data["callers"] == {"biz01": "Ultrasound", TEMP_B: ""}
        assert set(shop_data["call_modes"]) == {"biz01", TEMP_B}
        assert shop_data["call_modes"]["biz01"]["mode"] == "random"
        assert set(shop_data["get_num"]) == {"_type", "biz01", TEMP_B}
        assert shop_data["get_num"]["_type"] == "caller"
        assert shop_data["isMultiCaller"] is True

    def test_business_keyed_callers_untouched(self):
        document = copy.deepcopy(self.document)
        document["shop_data"]["callers"]["room01"] = "一診"
        document["shop_data"]["call_modes"]["room01"] = {"mode": "sequential"}

        result = transform_for_backend(document, booking_enabled=False)
        assert result["shop_data"]["callers"]["room01"] == "一診"
        assert result["shop_data"]["call_modes"]["room01"] == {"mode": "sequential"}

    def test_orphan_entries_dropped(self):
        self.document["shop_data"]["get_num"]["ghost"] = {"url": ""}
        result = transform_for_backend(self.document, booking_enabled=False)
        assert "ghost" not in result["shop_data"]["get_num"]

    def test_input_not_mutated(self):
        snapshot = copy.deepcopy(self.document)
        transform_for_backend(self.document, booking_enabled=False)
        assert self.document == snapshot


class TestValidateSubmission:
    """Test cases for validate_submission."""

    def test_blank_shop_id_blocks(self):
        assert validate_submission({"shop_id": "   "}) == ["請輸入店家ID"]
        assert validate_submission({}) == ["請輸入店家ID"]

    def test_valid_shop_id(self):
        assert validate_submission({"shop_id": "shop01"}) == []
