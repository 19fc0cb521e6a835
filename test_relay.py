"""
Tests for the FastAPI relay service.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from shop_admin.relay import app

CONFIG = {
    ("api", "backend_url"): "http://backend.test/",
    ("api", "timeout"): 7,
}


def _config_value(section, key, default=None):
    return CONFIG.get((section, key), default)


def _backend_response(body):
    response = MagicMock()
    response.text = json.dumps(body) if not isinstance(body, str) else body
    return response


@pytest.fixture
def client():
    with patch("shop_admin.relay.get_config_value", side_effect=_config_value):
        yield TestClient(app)


class TestRelay:
    """Test cases for the relay endpoint."""

    @patch("shop_admin.relay.requests.post")
    def test_get_forwards_shop_id(self, mock_post, client):
        mock_post.return_value = _backend_response({"result": "OK", "shop_data": {"name": "Clinic"}})

        resp = client.post("/shop-api", json={"type": "get", "shop_id": "tawe_zz001"})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": {"name": "Clinic"}}
        mock_post.assert_called_once_with(
            "http://backend.test/get_shop_data", json={"shop_id": "tawe_zz001"}, timeout=7
        )

    @patch("shop_admin.relay.requests.post")
    def test_set_forwards_action_and_record(self, mock_post, client):
        mock_post.return_value = _backend_response({"result": "OK"})
        record = {"shop_id": "s1", "shop_data": {"name": "x"}}

        resp = client.post("/shop-api", json={"type": "set", "action": "update", "shop_data": record})

        assert resp.json()["success"] is True
        assert mock_post.call_args.args[0] == "http://backend.test/set_shop_data"
        assert mock_post.call_args.kwargs["json"] == {"action": "update", "shop_data": record}

    @patch("shop_admin.relay.requests.post")
    def test_set_without_action_defaults_to_add(self, mock_post, client):
        mock_post.return_value = _backend_response({"result": "OK"})

        client.post("/", json={"type": "set", "shop_data": {"shop_id": "s1"}})

        assert mock_post.call_args.kwargs["json"]["action"] == "add"

    @patch("shop_admin.relay.requests.post")
    def test_backend_failure_normalized(self, mock_post, client):
        mock_post.return_value = _backend_response({"result": "Fail:006:s1"})

        resp = client.post("/shop-api", json={"type": "set", "action": "add", "shop_data": {}})

        assert resp.status_code == 200
        assert resp.json() == {"success": False, "error": "資料重複", "errorCode": "006", "detail": "s1"}

    @patch("shop_admin.relay.requests.post")
    def test_unrecognized_body_returns_raw(self, mock_post, client):
        mock_post.return_value = _backend_response({"status": "?"})

        resp = client.post("/shop-api", json={"type": "get", "shop_id": "s1"})

        assert resp.json() == {"success": False, "error": "Unknown response format", "raw": {"status": "?"}}

    @patch("shop_admin.relay.requests.post")
    def test_invalid_type(self, mock_post, client):
        resp = client.post("/shop-api", json={"type": "delete"})

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Invalid request type"}
        mock_post.assert_not_called()

    @patch("shop_admin.relay.requests.post")
    def test_backend_exception_returns_500(self, mock_post, client):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        resp = client.post("/shop-api", json={"type": "get", "shop_id": "s1"})

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "refused"}

    def test_cors_preflight(self, client):
        resp = client.options(
            "/shop-api",
            headers={
                "Origin": "http://localhost:8501",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
