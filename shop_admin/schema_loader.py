"""
Schema loader for the shop admin console.
Loads the CSV field schema and parses it into ordered field descriptors.
"""

import io
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple

import pandas as pd
import requests
import streamlit as st
from pydantic import BaseModel, field_validator

from .config_loader import get_config_value

# Configure logging
logger = logging.getLogger(__name__)

SHOP_DATA_PREFIX = "shop_data"
BOOKING_PATH = "shop_data.booking"
CALLERS_PATH = "shop_data.callers"
CALL_MODES_PATH = "shop_data.call_modes"
GET_NUM_PATH = "shop_data.get_num"
GET_NUM_TYPE_PATH = "shop_data.get_num._type"
MULTI_CALLER_PATH = "shop_data.isMultiCaller"
SHOP_ID_PATH = "shop_id"
GOOGLE_MAP_SEGMENT = "google_map"

CALLER_SECTIONS = {
    "callers": CALLERS_PATH,
    "call_modes": CALL_MODES_PATH,
    "get_num": GET_NUM_PATH,
}

# Internal paths that never get a widget of their own
HIDDEN_PATHS = {GET_NUM_TYPE_PATH, "shop_data.get_num.type"}
HIDDEN_MARKER = "hidden"

# CSV header -> descriptor attribute
HEADER_ALIASES = {
    "num": "order",
    "key": "path",
    "value": "value",
    "input type": "input_kind",
    "class": "css_class",
    "describe": "describe",
    "default": "default_value",
    "hint": "hint",
    "key之參數hint說明": "hint",
}

INPUT_KINDS = {"text", "number", "boolean", "radio", "url", "array", "textarea", "container"}

INPUT_KIND_ALIASES = {
    "": "container",
    "n/a": "container",
    "checkbox": "boolean",
    "switch-toggle": "boolean",
    "form-control": "text",
}


class FieldDescriptor(BaseModel):
    """One row of the CSV field schema."""

    order: str = ""
    path: str
    value: str = ""
    input_kind: str = "text"
    css_class: str = ""
    describe: str = ""
    default_value: str = ""
    hint: str = ""

    @field_validator("input_kind", mode="before")
    @classmethod
    def normalize_input_kind(cls, v: Any) -> str:
        kind = str(v or "").strip().lower()
        kind = INPUT_KIND_ALIASES.get(kind, kind)
        if kind not in INPUT_KINDS:
            logger.warning(f"Unsupported input type '{v}', treating as text")
            return "text"
        return kind

    @field_validator("path", mode="before")
    @classmethod
    def strip_path(cls, v: Any) -> str:
        return str(v or "").strip()

    @property
    def leaf_key(self) -> str:
        return self.path.split(".")[-1]

    @property
    def segments(self) -> List[str]:
        return self.path.split(".")


def order_key(order: str) -> Tuple[int, ...]:
    """
    Build a sort key from a dash-separated rank such as "3-1-2".

    Segments compare numerically one by one; missing or non-numeric segments
    count as 0, so "1-2" and "1-2-0" rank equally.
    """
    parts: List[int] = []
    for segment in str(order or "").split("-"):
        try:
            parts.append(int(segment.strip()))
        except ValueError:
            parts.append(0)

    while parts and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def sort_descriptors(descriptors: List[FieldDescriptor]) -> List[FieldDescriptor]:
    """Stable sort of descriptors by their order rank."""
    return sorted(descriptors, key=lambda d: order_key(d.order))


def parse_schema_csv(csv_text: str) -> List[FieldDescriptor]:
    """
    Parse CSV schema text into field descriptors.

    The first row is the header. Blank rows and rows without a key are skipped.

    Args:
        csv_text: Raw CSV content

    Returns:
        List of field descriptors in file order
    """
    if not csv_text or not csv_text.strip():
        return []

    frame = pd.read_csv(
        io.StringIO(csv_text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
    )

    columns = {}
    for column in frame.columns:
        attribute = HEADER_ALIASES.get(str(column).strip().lower())
        if attribute and attribute not in columns.values():
            columns[column] = attribute

    if "path" not in columns.values():
        raise ValueError("Schema CSV must contain a 'key' column")

    descriptors = []
    for record in frame.rename(columns=columns)[list(columns.values())].to_dict("records"):
        if not str(record.get("path", "")).strip():
            continue
        descriptors.append(FieldDescriptor(**record))

    logger.info(f"Parsed {len(descriptors)} field descriptors")
    return descriptors


def _read_schema_url(url: str) -> str:
    timeout = get_config_value("api", "timeout", 20)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    response.encoding = response.encoding or "utf-8"
    return response.text


@st.cache_data(show_spinner=False)
def _load_schema_with_mtime(path: str, mtime: float) -> List[FieldDescriptor]:
    """
    Parse a local schema with mtime as cache key for hot-reload.

    Args:
        path: Full path of the CSV file
        mtime: Modification time of the file
    """
    with open(path, "r", encoding="utf-8-sig") as f:
        return parse_schema_csv(f.read())


def load_schema(schema_name: str, source: Optional[str] = None) -> List[FieldDescriptor]:
    """
    Load a schema from the configured source.

    The source is either a local directory or an http(s) base URL. Any
    failure is logged and yields an empty list; nothing is retried.

    Args:
        schema_name: CSV file name, e.g. "ui-schema.csv"
        source: Directory or base URL (defaults to config schema.source)

    Returns:
        Field descriptors, or an empty list on failure
    """
    if source is None:
        source = get_config_value("schema", "source", "schemas")

    try:
        if str(source).startswith(("http://", "https://")):
            url = f"{str(source).rstrip('/')}/{schema_name}"
            descriptors = parse_schema_csv(_read_schema_url(url))
        else:
            full_path = Path(source) / schema_name
            if not full_path.exists():
                logger.error(f"Schema file not found: {full_path}")
                return []
            descriptors = _load_schema_with_mtime(str(full_path), os.path.getmtime(full_path))

        logger.info(f"Successfully loaded schema: {schema_name}")
        return list(descriptors)

    except requests.RequestException as e:
        logger.error(f"Error fetching schema {schema_name}: {e}")
        return []
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError, UnicodeDecodeError) as e:
        logger.error(f"Error parsing schema {schema_name}: {e}")
        return []
    except OSError as e:
        logger.error(f"Error reading schema {schema_name}: {e}")
        return []


def is_container(descriptor: FieldDescriptor) -> bool:
    """True for schema entries that are nesting points without a direct input."""
    return descriptor.input_kind == "container"


def is_hidden(descriptor: FieldDescriptor) -> bool:
    """True for internal fields and fields carrying the hidden marker."""
    if descriptor.path in HIDDEN_PATHS or descriptor.path.endswith("._external"):
        return True
    markers = (descriptor.css_class, descriptor.describe, descriptor.default_value)
    return any(HIDDEN_MARKER in str(marker).strip().lower().split() for marker in markers)


def caller_section(descriptor: FieldDescriptor) -> Optional[str]:
    """
    Return the caller section ("callers", "call_modes", "get_num") of a
    per-caller field, or None for shop-level fields.

    Per-caller fields are written against a template caller id in the CSV,
    e.g. "shop_data.call_modes.tawe_zz001.mode".
    """
    segments = descriptor.segments
    if len(segments) < 3 or segments[0] != SHOP_DATA_PREFIX or segments[1] not in CALLER_SECTIONS:
        return None

    section = segments[1]
    if section == "callers":
        return section
    if len(segments) >= 4 and not segments[2].startswith("_"):
        return section
    return None


def caller_relative_path(descriptor: FieldDescriptor) -> str:
    """Strip "shop_data.<section>.<template id>." from a per-caller path."""
    if caller_section(descriptor) is None:
        return descriptor.path
    return ".".join(descriptor.segments[3:])


def is_booking_child(descriptor: FieldDescriptor) -> bool:
    return descriptor.path.startswith(BOOKING_PATH + ".")


def base_fields(descriptors: List[FieldDescriptor], include_shop_id: bool = True) -> List[FieldDescriptor]:
    """Shop-level fields rendered in the basic info section."""
    excluded = {
        SHOP_DATA_PREFIX,
        BOOKING_PATH,
        MULTI_CALLER_PATH,
        CALLERS_PATH,
        CALL_MODES_PATH,
        GET_NUM_PATH,
    }
    if not include_shop_id:
        excluded.add(SHOP_ID_PATH)

    fields = [
        d for d in descriptors
        if d.path not in excluded
        and not d.path.startswith((CALLERS_PATH + ".", CALL_MODES_PATH + ".", GET_NUM_PATH + "."))
        and GOOGLE_MAP_SEGMENT not in d.segments
        and not is_booking_child(d)
        and not is_container(d)
        and not is_hidden(d)
    ]
    return sort_descriptors(fields)


def booking_fields(descriptors: List[FieldDescriptor]) -> List[FieldDescriptor]:
    return sort_descriptors([d for d in descriptors if is_booking_child(d) and not is_hidden(d)])


def call_mode_fields(descriptors: List[FieldDescriptor]) -> List[FieldDescriptor]:
    """Per-caller call mode fields, excluding set_params and containers."""
    fields = [
        d for d in descriptors
        if caller_section(d) == "call_modes"
        and "set_params" not in d.segments
        and not is_container(d)
        and not is_hidden(d)
    ]
    return sort_descriptors(fields)


def get_num_fields(descriptors: List[FieldDescriptor]) -> List[FieldDescriptor]:
    """Per-caller get_num fields, excluding _type, _external and containers."""
    fields = [
        d for d in descriptors
        if caller_section(d) == "get_num"
        and not is_container(d)
        and not is_hidden(d)
    ]
    return sort_descriptors(fields)


def get_num_type_field(descriptors: List[FieldDescriptor]) -> Optional[FieldDescriptor]:
    return next((d for d in descriptors if d.path == GET_NUM_TYPE_PATH), None)


def get_schema_info(descriptors: List[FieldDescriptor]) -> Dict[str, Any]:
    """Summarize a loaded schema for the sidebar."""
    kinds: Dict[str, int] = {}
    for descriptor in descriptors:
        kinds[descriptor.input_kind] = kinds.get(descriptor.input_kind, 0) + 1
    return {
        "field_count": len(descriptors),
        "input_kinds": kinds,
        "caller_fields": sum(1 for d in descriptors if caller_section(d) is not None),
    }
