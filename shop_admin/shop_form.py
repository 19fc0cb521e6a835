"""
Shared shop form used by the search and create views.
Lays out basic info, booking settings and the per-caller editor.
"""

import logging
from typing import List, Optional

import streamlit as st

from .caller_manager import add_caller, caller_display_name, caller_ids, is_multi_caller, next_selection, remove_caller
from .field_renderer import FieldRenderer, apply_caller_change, apply_change, radio_options_for
from .nested_document import get_nested_value
from .schema_loader import (
    GET_NUM_TYPE_PATH,
    FieldDescriptor,
    base_fields,
    booking_fields,
    call_mode_fields,
    get_num_fields,
    get_num_type_field,
)
from .session_manager import SessionManager
from .ui_feedback import Notify

logger = logging.getLogger(__name__)


class ShopForm:
    """Renders the editable shop record held in the session."""

    @staticmethod
    def render(descriptors: List[FieldDescriptor], view: str = "search"):
        """
        Render the full form.

        Args:
            descriptors: Loaded schema
            view: "search" (sparse, existing record) or "create" (blank record)
        """
        sparse = view == "search"

        with st.container(border=True):
            st.subheader("基本資料")
            FieldRenderer.render_fields(base_fields(descriptors, include_shop_id=not sparse), sparse=sparse)

            if sparse:
                st.toggle(
                    "isMultiCaller",
                    value=is_multi_caller(SessionManager.get_document()),
                    disabled=True,
                    key=f"multi_caller_{SessionManager.get_form_version()}_{len(SessionManager.get_caller_ids())}",
                    help="由叫號機數量自動計算",
                )

            ShopForm._render_booking(descriptors)

        with st.container(border=True):
            st.subheader("叫號機設定")
            ShopForm._render_get_num_type(get_num_type_field(descriptors))
            ShopForm._render_callers(descriptors, view)

    @staticmethod
    def _on_booking_toggle(key: str):
        SessionManager.set_booking_enabled(st.session_state.get(key, False))

    @staticmethod
    def _render_booking(descriptors: List[FieldDescriptor]):
        key = f"booking_toggle_{SessionManager.get_form_version()}"
        if key not in st.session_state:
            st.session_state[key] = SessionManager.is_booking_enabled()

        st.toggle("預約設定", key=key, on_change=ShopForm._on_booking_toggle, args=(key,))

        if SessionManager.is_booking_enabled():
            FieldRenderer.render_fields(booking_fields(descriptors))

    @staticmethod
    def _on_get_num_type_change(key: str):
        updated = apply_change(SessionManager.get_document(), GET_NUM_TYPE_PATH, st.session_state.get(key))
        SessionManager.set_document(updated)

    @staticmethod
    def _render_get_num_type(descriptor: Optional[FieldDescriptor]):
        options = radio_options_for(GET_NUM_TYPE_PATH)
        key = f"get_num_type_{SessionManager.get_form_version()}"
        if key not in st.session_state:
            current = get_nested_value(SessionManager.get_document(), GET_NUM_TYPE_PATH)
            if current not in options:
                current = descriptor.default_value if descriptor and descriptor.default_value in options else options[0]
            st.session_state[key] = current

        label = "取號機型別 (_type)"
        if descriptor and descriptor.hint:
            label = f"{label} ({descriptor.hint})"
        st.radio(label, options=options, horizontal=True, key=key,
                 on_change=ShopForm._on_get_num_type_change, args=(key,))

    @staticmethod
    def _selector_key() -> str:
        return f"caller_select_{SessionManager.get_form_version()}"

    @staticmethod
    def _select_caller(caller_id: Optional[str]):
        SessionManager.set_selected_caller(caller_id)
        st.session_state[ShopForm._selector_key()] = caller_id

    @staticmethod
    def _on_select_caller(key: str):
        SessionManager.set_selected_caller(st.session_state.get(key))

    @staticmethod
    def _on_add_caller():
        document, new_id = add_caller(SessionManager.get_document())
        SessionManager.set_document(document)
        ShopForm._select_caller(new_id)
        Notify.success("已新增叫號機")

    @staticmethod
    def _on_remove_caller(caller_id: str):
        ids = SessionManager.get_caller_ids()
        SessionManager.set_document(remove_caller(SessionManager.get_document(), caller_id))
        ShopForm._select_caller(next_selection(ids, SessionManager.get_selected_caller(), caller_id))
        Notify.success("已刪除叫號機")

    @staticmethod
    def _on_caller_input(caller_id: str, key: str):
        updated = apply_caller_change(SessionManager.get_document(), caller_id, "callers", "", st.session_state.get(key, ""))
        SessionManager.set_document(updated)

    @staticmethod
    def _render_callers(descriptors: List[FieldDescriptor], view: str):
        document = SessionManager.get_document()
        ids = SessionManager.get_caller_ids()
        selected = SessionManager.get_selected_caller()

        col1, col2 = st.columns([1, 1])
        with col1:
            st.button("➕ 新增叫號機", on_click=ShopForm._on_add_caller, use_container_width=True)
        with col2:
            # Create view always keeps at least one caller
            can_remove = bool(selected) and (view != "create" or len(ids) > 1)
            st.button("🗑️ 刪除叫號機", on_click=ShopForm._on_remove_caller, args=(selected,),
                      disabled=not can_remove, use_container_width=True)

        if not ids:
            st.info("尚未設定叫號機")
            return

        key = ShopForm._selector_key()
        if st.session_state.get(key) not in ids:
            ShopForm._select_caller(selected if selected in ids else ids[0])

        labels = {caller_id: caller_display_name(document, caller_id, i) for i, caller_id in enumerate(ids)}
        st.radio(
            "叫號機",
            options=ids,
            key=key,
            on_change=ShopForm._on_select_caller,
            args=(key,),
            format_func=lambda caller_id: labels[caller_id],
            horizontal=True,
            label_visibility="collapsed",
        )

        ShopForm._render_caller_detail(descriptors, st.session_state[key], view)

    @staticmethod
    def _render_caller_detail(descriptors: List[FieldDescriptor], caller_id: str, view: str):
        # Callers added in this session have nothing loaded to be sparse about
        sparse = view == "search" and caller_id in caller_ids(SessionManager.get_original_document())

        key = f"caller_{SessionManager.get_form_version()}_{caller_id}"
        if key not in st.session_state:
            raw = get_nested_value(SessionManager.get_document(), f"shop_data.callers.{caller_id}")
            st.session_state[key] = "" if raw is None else str(raw)

        if view == "create":
            label = "叫號機 ID | 名稱"
            placeholder = "例如: biz01 | 門診叫號"
        else:
            label = f"叫號機名稱 ({caller_id})"
            placeholder = None
        st.text_input(label, key=key, placeholder=placeholder,
                      on_change=ShopForm._on_caller_input, args=(caller_id, key))

        st.markdown("**叫號模式 (call_modes)**")
        if not FieldRenderer.render_fields(call_mode_fields(descriptors), caller_id=caller_id, sparse=sparse):
            st.caption("無設定值")

        st.markdown("**取號設定 (get_num)**")
        if not FieldRenderer.render_fields(get_num_fields(descriptors), caller_id=caller_id, sparse=sparse):
            st.caption("無設定值")
