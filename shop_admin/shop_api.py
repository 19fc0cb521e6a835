"""
Shop API client.

Fetches and persists shop records on the remote backend, either through the
relay service or by calling the backend directly. Each operation is a single
POST; nothing is retried.
"""

import json
import logging
from typing import Dict, Any, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config_loader import get_config_value

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    "001": "格式錯誤",
    "002": "找不到店家",
    "003": "不支援此動作",
    "006": "資料重複",
    "009": "系統錯誤",
}
DEFAULT_ERROR_CODE = "009"
DUPLICATE_ERROR_CODE = "006"
TRANSPORT_ERROR_MESSAGE = "API 連線失敗"
UNKNOWN_FORMAT_ERROR = "Unknown response format"


class ShopApiResponse(BaseModel):
    """Normalized result of a shop API call."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    detail: Optional[str] = None
    raw: Optional[Any] = None
    transport_failure: bool = False

    def to_payload(self) -> Dict[str, Any]:
        """Wire form used by the relay (camelCase error code, unset fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"transport_failure"})


def error_message_for(code: Optional[str]) -> str:
    return ERROR_MESSAGES.get(code or "", ERROR_MESSAGES[DEFAULT_ERROR_CODE])


def normalize_backend_response(text: str) -> ShopApiResponse:
    """
    Turn a raw backend body into a ShopApiResponse.

    The backend answers {"result": "OK", "shop_data": {...}} on success and
    {"result": "Fail:<code>:<detail>"} on failure. Bodies that are not JSON
    are treated as {"result": <body>}.
    """
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        payload = {"result": text}

    result = payload.get("result") if isinstance(payload, dict) else None
    if not result:
        result = text

    if result == "OK":
        data = payload.get("shop_data") if isinstance(payload, dict) else None
        # An empty shop_data is still the record
        return ShopApiResponse(success=True, data=payload if data is None else data)

    if isinstance(result, str) and result.startswith("Fail"):
        parts = result.split(":")
        code = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_ERROR_CODE
        detail = ":".join(parts[2:]) or result
        return ShopApiResponse(
            success=False,
            error_code=code,
            error=error_message_for(code),
            detail=detail,
        )

    logger.warning(f"Unrecognized backend response: {text[:200]}")
    return ShopApiResponse(success=False, error=UNKNOWN_FORMAT_ERROR, raw=payload)


def error_channel(response: ShopApiResponse) -> str:
    """Duplicate-data failures need a blocking alert; everything else is a toast."""
    if response.error_code == DUPLICATE_ERROR_CODE:
        return "alert"
    return "toast"


def user_message(response: ShopApiResponse) -> str:
    """Message shown to the user for a failed response."""
    if response.transport_failure:
        return TRANSPORT_ERROR_MESSAGE
    if response.error_code:
        return ERROR_MESSAGES.get(response.error_code) or response.error or ERROR_MESSAGES[DEFAULT_ERROR_CODE]
    return response.error or ERROR_MESSAGES[DEFAULT_ERROR_CODE]


class ShopApiClient:
    """Client for the shop backend."""

    def __init__(
        self,
        mode: str = "relay",
        relay_url: Optional[str] = None,
        backend_url: Optional[str] = None,
        timeout: float = 20
    ):
        if mode not in ("relay", "direct"):
            raise ValueError(f"Unsupported api mode: {mode}")
        self.mode = mode
        self.relay_url = relay_url
        self.backend_url = (backend_url or "").rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls) -> "ShopApiClient":
        return cls(
            mode=get_config_value("api", "mode", "relay"),
            relay_url=get_config_value("api", "relay_url"),
            backend_url=get_config_value("api", "backend_url"),
            timeout=get_config_value("api", "timeout", 20),
        )

    def get_shop_data(self, shop_id: str) -> ShopApiResponse:
        """Fetch one shop record."""
        return self._send({"type": "get", "shop_id": shop_id})

    def add_shop_data(self, shop_data: Dict[str, Any]) -> ShopApiResponse:
        """Create a shop record."""
        return self._send({"type": "set", "action": "add", "shop_data": shop_data})

    def update_shop_data(self, shop_data: Dict[str, Any]) -> ShopApiResponse:
        """Overwrite an existing shop record."""
        return self._send({"type": "set", "action": "update", "shop_data": shop_data})

    def _send(self, request: Dict[str, Any]) -> ShopApiResponse:
        logger.info(f"[shop_api] {self.mode} request type: {request['type']}, action: {request.get('action')}, shop_id: {request.get('shop_id')}")
        try:
            if self.mode == "relay":
                return self._send_relay(request)
            return self._send_direct(request)
        except requests.exceptions.Timeout:
            logger.error(f"[shop_api] Request timed out after {self.timeout}s")
            return ShopApiResponse(success=False, error="Request timed out", transport_failure=True)
        except requests.exceptions.RequestException as e:
            logger.error(f"[shop_api] Request failed: {e}")
            return ShopApiResponse(success=False, error=str(e), transport_failure=True)

    def _send_relay(self, request: Dict[str, Any]) -> ShopApiResponse:
        resp = requests.post(self.relay_url, json=request, timeout=self.timeout)
        logger.debug(f"[shop_api] Relay response HTTP {resp.status_code}: {resp.text[:500]}")

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code != 200 or not isinstance(body, dict):
            error = body.get("error") if isinstance(body, dict) else None
            return ShopApiResponse(
                success=False,
                error=error or f"HTTP {resp.status_code}",
                raw=body if body is not None else resp.text,
                transport_failure=True,
            )

        try:
            return ShopApiResponse.model_validate(body)
        except ValidationError as e:
            logger.warning(f"[shop_api] Unrecognized relay response: {e}")
            return ShopApiResponse(success=False, error=UNKNOWN_FORMAT_ERROR, raw=body)

    def _send_direct(self, request: Dict[str, Any]) -> ShopApiResponse:
        url, body = backend_request(self.backend_url, request)
        resp = requests.post(url, json=body, timeout=self.timeout)
        logger.debug(f"[shop_api] Backend response HTTP {resp.status_code}: {resp.text[:500]}")
        return normalize_backend_response(resp.text)


def backend_request(backend_url: str, request: Dict[str, Any]) -> tuple:
    """
    Build the backend (url, body) for a relay-style request.

    Raises:
        ValueError: For request types other than get and set
    """
    request_type = request.get("type")
    if request_type == "get":
        return f"{backend_url}/get_shop_data", {"shop_id": request.get("shop_id")}
    if request_type == "set":
        return f"{backend_url}/set_shop_data", {
            "action": request.get("action") or "add",
            "shop_data": request.get("shop_data"),
        }
    raise ValueError("Invalid request type")
