"""
Field renderer for the shop admin console.
Maps schema descriptors to Streamlit widgets and writes edits back into the record.
"""

import logging
from typing import Dict, Any, List, Optional, Tuple

import streamlit as st
from pypinyin import Style, pinyin

from .nested_document import get_nested_value, with_nested_value
from .schema_loader import FieldDescriptor, caller_relative_path, caller_section, is_container, is_hidden
from .session_manager import SessionManager

logger = logging.getLogger(__name__)

NAME_PATH = "shop_data.name"
PINYIN_PATH = "shop_data.pinyin"
BOOKING_PATH = "shop_data.booking"

RADIO_OPTIONS: Dict[str, Tuple[str, ...]] = {
    "mode": ("random", "sequential"),
    "_type": ("caller", "shop"),
}
DEFAULT_RADIO_OPTIONS = ("random", "sequential")

WIDGET_TYPES = {
    "boolean": "toggle",
    "radio": "radio",
    "text": "text_input",
    "url": "text_input",
    "textarea": "text_area",
    "number": "number_input",
    "array": "array_input",
}

ARRAY_PLACEHOLDER = "用逗號分隔多個值"


def to_pinyin(text: str) -> str:
    """Tone-marked pinyin of a shop name, one word per character group."""
    if not text:
        return ""
    return " ".join(item[0] for item in pinyin(text, style=Style.TONE, heteronym=False))


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def coerce_int(value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        try:
            return int(float(str(value).strip()))
        except (TypeError, ValueError):
            return 0


def format_array(value: Any) -> str:
    """Render a list as comma-separated text."""
    if not isinstance(value, list):
        return ""
    return ", ".join(str(item) for item in value)


def parse_array(text: Any) -> List[str]:
    """Split comma-separated text into trimmed items."""
    if not text or not str(text).strip():
        return []
    return [item.strip() for item in str(text).split(",")]


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def widget_type_for(descriptor: FieldDescriptor) -> Optional[str]:
    """Widget used for a descriptor, None for containers."""
    if is_container(descriptor):
        return None
    return WIDGET_TYPES.get(descriptor.input_kind, "text_input")


def radio_options_for(path: str) -> Tuple[str, ...]:
    """Choices for a radio field, keyed by the field's leaf name."""
    leaf = path.split(".")[-1] if path else ""
    return RADIO_OPTIONS.get(leaf, DEFAULT_RADIO_OPTIONS)


def value_path(descriptor: FieldDescriptor, caller_id: Optional[str] = None) -> str:
    """Absolute document path a descriptor reads and writes, for a given caller."""
    section = caller_section(descriptor)
    if caller_id is None or section is None:
        return descriptor.path
    if section == "callers":
        return f"shop_data.callers.{caller_id}"
    return f"shop_data.{section}.{caller_id}.{caller_relative_path(descriptor)}"


def default_for(descriptor: FieldDescriptor) -> Any:
    """
    Typed default of a descriptor, or None.

    A default identical to the hint is only a placeholder and yields None.
    """
    default = descriptor.default_value
    if not default:
        return None
    if descriptor.hint and default == descriptor.hint:
        return None
    if descriptor.input_kind == "boolean":
        return default.strip().lower() == "true"
    if descriptor.input_kind == "number":
        return coerce_int(default)
    return default


def resolve_value(descriptor: FieldDescriptor, document: Optional[Dict[str, Any]], caller_id: Optional[str] = None) -> Any:
    """
    Current value of a field, falling back to its typed default.

    Args:
        descriptor: Field descriptor
        document: Shop record
        caller_id: Caller whose copy of a per-caller field should be read

    Returns:
        Stored value, typed default, or None
    """
    value = get_nested_value(document, value_path(descriptor, caller_id))
    if value is None:
        return default_for(descriptor)
    return value


def apply_change(document: Optional[Dict[str, Any]], path: str, value: Any) -> Dict[str, Any]:
    """
    Return a new record with value written at path.

    Writing the shop name also refreshes its pinyin transliteration.
    """
    updated = with_nested_value(document, path, value)
    if path == NAME_PATH and isinstance(value, str):
        updated = with_nested_value(updated, PINYIN_PATH, to_pinyin(value))
    return updated


def apply_caller_change(
    document: Optional[Dict[str, Any]],
    caller_id: str,
    section: str,
    field: str,
    value: Any
) -> Dict[str, Any]:
    """
    Write a per-caller value.

    Args:
        document: Shop record
        caller_id: Caller key
        section: "callers", "call_modes" or "get_num"
        field: Relative field path inside the caller entry (ignored for callers)
        value: New value
    """
    if section == "callers":
        return with_nested_value(document, f"shop_data.callers.{caller_id}", value)
    if section not in ("call_modes", "get_num"):
        raise ValueError(f"Unknown caller section: {section}")
    return with_nested_value(document, f"shop_data.{section}.{caller_id}.{field}", value)


def should_render(descriptor: FieldDescriptor, booking_enabled: bool) -> bool:
    """False for containers, hidden fields and booking fields while booking is off."""
    if is_container(descriptor) or is_hidden(descriptor):
        return False
    if descriptor.path.startswith(BOOKING_PATH + ".") and not booking_enabled:
        return False
    return True


def field_label(descriptor: FieldDescriptor) -> str:
    label = descriptor.leaf_key
    if descriptor.hint:
        label = f"{label} ({descriptor.hint})"
    return label


def widget_key(path: str, version: int = 0) -> str:
    return f"field_{version}_{path}"


def widget_value(descriptor: FieldDescriptor, value: Any) -> Any:
    """Convert a document value to what the widget holds."""
    kind = descriptor.input_kind
    if kind == "boolean":
        return coerce_bool(value)
    if kind == "number":
        return coerce_int(value) if value is not None else 0
    if kind == "array":
        return format_array(value)
    if kind == "radio":
        options = radio_options_for(descriptor.path)
        return value if value in options else options[0]
    return "" if value is None else str(value)


def document_value(descriptor: FieldDescriptor, raw: Any) -> Any:
    """Convert a widget value back to what the document stores."""
    kind = descriptor.input_kind
    if kind == "boolean":
        return bool(raw)
    if kind == "number":
        return coerce_int(raw)
    if kind == "array":
        return parse_array(raw)
    return "" if raw is None else raw


class FieldRenderer:
    """Renders descriptors as Streamlit widgets bound to the session record."""

    @staticmethod
    def _on_change(descriptor: FieldDescriptor, path: str, key: str):
        value = document_value(descriptor, st.session_state.get(key))
        updated = apply_change(SessionManager.get_document(), path, value)
        SessionManager.set_document(updated)
        logger.debug(f"[_on_change] {path} = {value!r}")

        if path == NAME_PATH:
            pinyin_key = widget_key(PINYIN_PATH, SessionManager.get_form_version())
            if pinyin_key in st.session_state:
                st.session_state[pinyin_key] = updated["shop_data"]["pinyin"]

    @staticmethod
    def render_field(
        descriptor: FieldDescriptor,
        caller_id: Optional[str] = None,
        sparse: bool = False,
        disabled: bool = False
    ) -> Optional[Any]:
        """
        Render one field; returns the displayed value or None when skipped.

        Args:
            descriptor: Field descriptor
            caller_id: Caller whose copy of a per-caller field is edited
            sparse: Skip fields that were empty in the loaded record (booleans excepted)
            disabled: Render read-only
        """
        if not should_render(descriptor, SessionManager.is_booking_enabled()):
            return None

        path = value_path(descriptor, caller_id)
        if sparse and descriptor.input_kind != "boolean":
            if is_empty_value(get_nested_value(SessionManager.get_original_document(), path)):
                return None

        try:
            document = SessionManager.get_document()
            key = widget_key(path, SessionManager.get_form_version())
            if key not in st.session_state:
                st.session_state[key] = widget_value(descriptor, resolve_value(descriptor, document, caller_id))

            widget_kwargs = {
                'label': field_label(descriptor),
                'key': key,
                'help': descriptor.describe or None,
                'disabled': disabled,
                'on_change': FieldRenderer._on_change,
                'args': (descriptor, path, key),
            }

            widget_type = widget_type_for(descriptor)
            if widget_type == "toggle":
                return st.toggle(**widget_kwargs)
            elif widget_type == "radio":
                return st.radio(options=radio_options_for(descriptor.path), horizontal=True, **widget_kwargs)
            elif widget_type == "number_input":
                return st.number_input(step=1, format="%d", **widget_kwargs)
            elif widget_type == "text_area":
                return st.text_area(placeholder=descriptor.hint or None, height=100, **widget_kwargs)
            elif widget_type == "array_input":
                return st.text_input(placeholder=ARRAY_PLACEHOLDER, **widget_kwargs)
            else:
                return st.text_input(placeholder=descriptor.hint or None, **widget_kwargs)

        except Exception as e:
            st.error(f"Error rendering field {descriptor.path}: {str(e)}")
            logger.error(f"Error rendering field {descriptor.path}: {e}", exc_info=True)
            return None

    @staticmethod
    def render_fields(
        descriptors: List[FieldDescriptor],
        caller_id: Optional[str] = None,
        sparse: bool = False,
        columns: int = 2
    ) -> int:
        """Render descriptors in a grid; returns the number of widgets shown."""
        visible = [d for d in descriptors if should_render(d, SessionManager.is_booking_enabled())]
        if not visible:
            return 0

        rendered = 0
        grid = st.columns(columns)
        for descriptor in visible:
            with grid[rendered % columns]:
                if FieldRenderer.render_field(descriptor, caller_id=caller_id, sparse=sparse) is not None:
                    rendered += 1
        return rendered

