"""
Development-mode data source.
Serves shop records from a local JSON file instead of the backend.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from .config_loader import get_config_value

logger = logging.getLogger(__name__)


def load_mock_records(mock_file: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Load the mock records keyed by shop_id.

    The file holds either a single record with a shop_id or a mapping of
    shop_id to record.

    Args:
        mock_file: Path to the JSON file (defaults to config dev_mode.mock_data_file)

    Returns:
        Mapping of shop_id to record (empty if the file cannot be read)
    """
    path = Path(mock_file or get_config_value("dev_mode", "mock_data_file", "mock/example_crm_json_list.json"))

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.error(f"Mock data file not found: {path}")
        return {}
    except (json.JSONDecodeError, OSError) as e:
        logger.error(f"Failed to read mock data {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Mock data must be a JSON object: {path}")
        return {}

    if "shop_id" in data:
        return {str(data["shop_id"]): data}

    records = {}
    for shop_id, record in data.items():
        if isinstance(record, dict):
            records[shop_id] = {"shop_id": shop_id, **record} if "shop_id" not in record else record
    return records


def find_mock_record(shop_id: str, mock_file: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return the mock record for shop_id, or None."""
    record = load_mock_records(mock_file).get(shop_id)
    if record is None:
        logger.info(f"No mock record for shop_id '{shop_id}'")
    return record
