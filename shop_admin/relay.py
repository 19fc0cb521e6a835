"""
Relay service between the admin console and the shop backend.

Accepts {type, shop_id?, action?, shop_data?}, forwards to the backend's
/get_shop_data or /set_shop_data endpoint and answers with the normalized
{success, data | errorCode, error, detail | raw} envelope.

Run with: uvicorn shop_admin.relay:app
"""

import json
import logging
from typing import Dict, Any, Optional

import requests
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config_loader import get_config_value
from .shop_api import backend_request, normalize_backend_response

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


class RelayRequest(BaseModel):
    type: Optional[str] = None
    shop_id: Optional[str] = None
    action: Optional[str] = None
    shop_data: Optional[Dict[str, Any]] = None


app = FastAPI(
    title="Shop API Relay",
    description="Pass-through relay to the shop backend",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=ALLOWED_HEADERS,
)


@app.post("/")
@app.post("/shop-api")
def relay(request: RelayRequest):
    logger.info(f"[shop-api] Request type: {request.type}, action: {request.action}, shop_id: {request.shop_id}")

    backend_url = str(get_config_value("api", "backend_url", "")).rstrip("/")
    timeout = get_config_value("api", "timeout", 20)

    try:
        url, body = backend_request(backend_url, request.model_dump())
    except ValueError:
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request type"})

    try:
        logger.info(f"[shop-api] Calling backend: {url}")
        logger.debug(f"[shop-api] Body: {json.dumps(body, ensure_ascii=False)}")

        backend_response = requests.post(url, json=body, timeout=timeout)
        logger.info(f"[shop-api] Backend response: {backend_response.text}")

        return normalize_backend_response(backend_response.text).to_payload()

    except Exception as e:
        logger.error(f"[shop-api] Error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e) or "Internal server error"})
