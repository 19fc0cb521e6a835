"""
Unit tests for the shop API client and backend response normalization.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from shop_admin.shop_api import (
    ShopApiClient,
    ShopApiResponse,
    backend_request,
    error_channel,
    normalize_backend_response,
    user_message,
)


def _http_response(status_code=200, body=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = json.dumps(body)
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


class TestNormalizeBackendResponse:
    """Test cases for normalize_backend_response."""

    def test_ok_with_shop_data(self):
        response = normalize_backend_response(json.dumps({"result": "OK", "shop_data": {"name": "Clinic"}}))
        assert response.success is True
        assert response.data == {"name": "Clinic"}

    def test_ok_without_shop_data_returns_body(self):
        response = normalize_backend_response(json.dumps({"result": "OK"}))
        assert response.success is True
        assert response.data == {"result": "OK"}

    def test_ok_with_empty_shop_data(self):
        response = normalize_backend_response(json.dumps({"result": "OK", "shop_data": {}}))
        assert response.success is True
        assert response.data == {}

    def test_duplicate_failure(self):
        response = normalize_backend_response(json.dumps({"result": "Fail:006:ItemX"}))
        assert response.success is False
        assert response.error_code == "006"
        assert response.error == "資料重複"
        assert response.detail == "ItemX"

    def test_failure_without_code(self):
        response = normalize_backend_response(json.dumps({"result": "Fail"}))
        assert response.error_code == "009"
        assert response.error == "系統錯誤"
        assert response.detail == "Fail"

    def test_unknown_code_maps_to_system_error(self):
        response = normalize_backend_response(json.dumps({"result": "Fail:042:odd"}))
        assert response.error_code == "042"
        assert response.error == "系統錯誤"

    def test_detail_keeps_colons(self):
        response = normalize_backend_response(json.dumps({"result": "Fail:002:shop:tawe_zz001"}))
        assert response.error == "找不到店家"
        assert response.detail == "shop:tawe_zz001"

    def test_plain_text_body(self):
        response = normalize_backend_response("Fail:001:bad json")
        assert response.error_code == "001"
        assert response.error == "格式錯誤"

    def test_unknown_format(self):
        response = normalize_backend_response(json.dumps({"status": "weird"}))
        assert response.success is False
        assert response.error == "Unknown response format"
        assert response.raw == {"status": "weird"}

    def test_payload_uses_camel_case(self):
        payload = normalize_backend_response(json.dumps({"result": "Fail:006:ItemX"})).to_payload()
        assert payload == {"success": False, "error": "資料重複", "errorCode": "006", "detail": "ItemX"}


class TestMessages:
    """Test cases for error_channel and user_message."""

    def test_duplicate_goes_to_alert(self):
        assert error_channel(ShopApiResponse(success=False, error_code="006")) == "alert"
        assert error_channel(ShopApiResponse(success=False, error_code="002")) == "toast"
        assert error_channel(ShopApiResponse(success=False)) == "toast"

    def test_user_message(self):
        assert user_message(ShopApiResponse(success=False, error_code="002")) == "找不到店家"
        assert user_message(ShopApiResponse(success=False, error="x", transport_failure=True)) == "API 連線失敗"
        assert user_message(ShopApiResponse(success=False, error="Unknown response format")) == "Unknown response format"
        assert user_message(ShopApiResponse(success=False)) == "系統錯誤"


class TestBackendRequest:
    """Test cases for backend_request."""

    def test_get(self):
        assert backend_request("http://b", {"type": "get", "shop_id": "s1"}) == (
            "http://b/get_shop_data", {"shop_id": "s1"}
        )

    def test_set_defaults_to_add(self):
        url, body = backend_request("http://b", {"type": "set", "shop_data": {"shop_id": "s1"}})
        assert url == "http://b/set_shop_data"
        assert body == {"action": "add", "shop_data": {"shop_id": "s1"}}

    def test_invalid_type(self):
        with pytest.raises(ValueError, match="Invalid request type"):
            backend_request("http://b", {"type": "delete"})


class TestShopApiClientRelay:
    """Test cases for the client in relay mode."""

    def setup_method(self):
        self.client = ShopApiClient(mode="relay", relay_url="http://relay/shop-api", timeout=5)

    @patch("shop_admin.shop_api.requests.post")
    def test_get_shop_data(self, mock_post):
        mock_post.return_value = _http_response(body={"success": True, "data": {"name": "Clinic"}})

        response = self.client.get_shop_data("tawe_zz001")

        assert response.success is True
        assert response.data == {"name": "Clinic"}
        mock_post.assert_called_once_with(
            "http://relay/shop-api", json={"type": "get", "shop_id": "tawe_zz001"}, timeout=5
        )

    @patch("shop_admin.shop_api.requests.post")
    def test_update_sends_whole_record(self, mock_post):
        mock_post.return_value = _http_response(body={"success": True, "data": {"result": "OK"}})
        record = {"shop_id": "s1", "shop_data": {"name": "x"}}

        self.client.update_shop_data(record)

        assert mock_post.call_args.kwargs["json"] == {"type": "set", "action": "update", "shop_data": record}

    @patch("shop_admin.shop_api.requests.post")
    def test_backend_failure_passed_through(self, mock_post):
        mock_post.return_value = _http_response(
            body={"success": False, "error": "資料重複", "errorCode": "006", "detail": "s1"}
        )

        response = self.client.add_shop_data({"shop_id": "s1"})

        assert response.success is False
        assert response.error_code == "006"
        assert response.transport_failure is False

    @patch("shop_admin.shop_api.requests.post")
    def test_relay_error_status_is_transport_failure(self, mock_post):
        mock_post.return_value = _http_response(status_code=400, body={"success": False, "error": "Invalid request type"})

        response = self.client.get_shop_data("s1")

        assert response.transport_failure is True
        assert response.error == "Invalid request type"

    @patch("shop_admin.shop_api.requests.post")
    def test_unrecognized_relay_body(self, mock_post):
        mock_post.return_value = _http_response(body={"ok": 1})

        response = self.client.get_shop_data("s1")

        assert response.success is False
        assert response.error == "Unknown response format"
        assert response.raw == {"ok": 1}
        assert response.transport_failure is False

    @patch("shop_admin.shop_api.requests.post")
    def test_non_json_body_is_transport_failure(self, mock_post):
        mock_post.return_value = _http_response(status_code=502, text="Bad Gateway")

        response = self.client.get_shop_data("s1")

        assert response.transport_failure is True
        assert response.raw == "Bad Gateway"

    @patch("shop_admin.shop_api.requests.post")
    def test_timeout(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()

        response = self.client.get_shop_data("s1")

        assert response.success is False
        assert response.transport_failure is True
        assert user_message(response) == "API 連線失敗"
        assert mock_post.call_count == 1

    @patch("shop_admin.shop_api.requests.post")
    def test_connection_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        response = self.client.get_shop_data("s1")

        assert response.transport_failure is True


class TestShopApiClientDirect:
    """Test cases for the client in direct mode."""

    def setup_method(self):
        self.client = ShopApiClient(mode="direct", backend_url="http://backend/", timeout=5)

    @patch("shop_admin.shop_api.requests.post")
    def test_get_normalizes_locally(self, mock_post):
        mock_post.return_value = _http_response(body={"result": "OK", "shop_data": {"name": "Clinic"}})

        response = self.client.get_shop_data("s1")

        assert response.data == {"name": "Clinic"}
        mock_post.assert_called_once_with("http://backend/get_shop_data", json={"shop_id": "s1"}, timeout=5)

    @patch("shop_admin.shop_api.requests.post")
    def test_add_failure(self, mock_post):
        mock_post.return_value = _http_response(body={"result": "Fail:006:s1"})

        response = self.client.add_shop_data({"shop_id": "s1"})

        assert mock_post.call_args.args[0] == "http://backend/set_shop_data"
        assert mock_post.call_args.kwargs["json"] == {"action": "add", "shop_data": {"shop_id": "s1"}}
        assert error_channel(response) == "alert"

    def test_unsupported_mode(self):
        with pytest.raises(ValueError):
            ShopApiClient(mode="grpc")
