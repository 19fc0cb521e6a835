"""
Search view for the shop admin console.
Looks up a shop by id, edits the fetched record and saves it back.
"""

import json
import logging
from typing import List

import streamlit as st

from .config_loader import get_config_value
from .diff_utils import calculate_diff, format_diff_for_display, get_change_summary, has_changes
from .error_handler import ErrorHandler, ErrorType
from .mock_data import find_mock_record
from .schema_loader import FieldDescriptor, load_schema
from .session_manager import SessionManager
from .shop_api import ShopApiClient
from .shop_form import ShopForm
from .submission_transformer import transform_for_backend
from .ui_feedback import Notify, notify_api_failure, show_loading

logger = logging.getLogger(__name__)


class SearchView:
    """Manages the search / edit interface."""

    @staticmethod
    def render():
        """Render the complete search view."""
        st.header("🔍 查詢店家")

        descriptors = SearchView._load_descriptors()
        SearchView._render_search_bar()

        document = SessionManager.get_document()
        if document is None:
            st.info("請輸入店家代碼並按下查詢")
            return

        st.text_input("shop_id", value=document.get("shop_id", ""), disabled=True,
                      key=f"shop_id_display_{SessionManager.get_form_version()}")

        ShopForm.render(descriptors, view="search")

        st.divider()
        SearchView._render_changes_preview()
        SearchView._render_save_button()

    @staticmethod
    def _load_descriptors() -> List[FieldDescriptor]:
        schema_name = get_config_value("schema", "edit_schema", "ui-schema.csv")
        descriptors = ErrorHandler.with_error_handling(
            lambda: load_schema(schema_name),
            "schema load",
            ErrorType.SCHEMA,
            default_return=[]
        )
        if not descriptors:
            Notify.once("載入表單結構失敗", notification_type="error", key="search_schema_error_notified")
        SessionManager.set_schema_fields(descriptors)
        return descriptors

    @staticmethod
    def _render_search_bar():
        col1, col2 = st.columns([4, 1], vertical_alignment="bottom")
        with col1:
            st.text_input("店家代碼 (shop_id)", key="shop_id_input")
        with col2:
            clicked = st.button("查詢", type="primary", disabled=SessionManager.is_loading(),
                                use_container_width=True)

        if clicked:
            SearchView.handle_search(SessionManager.get_shop_id_input())

    @staticmethod
    def handle_search(shop_id: str) -> bool:
        """
        Fetch a record and install it in the session.

        Returns:
            True if a record was loaded
        """
        shop_id = (shop_id or "").strip()
        if not shop_id:
            Notify.error("請輸入店家代碼")
            return False

        SessionManager.set_loading(True)
        try:
            with show_loading("查詢中..."):
                if SessionManager.is_dev_mode():
                    record = find_mock_record(shop_id)
                    if record is None:
                        Notify.error("找不到該店家資料")
                        return False
                    SessionManager.load_record(record)
                    Notify.success("成功載入資料 (開發模式)")
                    return True

                response = ShopApiClient.from_config().get_shop_data(shop_id)
                if not response.success:
                    notify_api_failure(response)
                    return False

                SessionManager.load_record({"shop_id": shop_id, "shop_data": response.data})
                Notify.success("成功載入資料")
                return True

        except Exception as e:
            ErrorHandler.handle_error(e, "shop search", ErrorType.NETWORK, user_message="查詢失敗，請檢查網路連線")
            return False
        finally:
            SessionManager.set_loading(False)

    @staticmethod
    def _render_changes_preview():
        try:
            changes = calculate_diff(SessionManager.get_original_document(), SessionManager.get_document())
            with st.expander("📝 變更預覽", expanded=has_changes(changes)):
                if has_changes(changes):
                    summary = get_change_summary(changes)
                    col1, col2, col3 = st.columns(3)
                    col1.metric("修改", summary['modified'])
                    col2.metric("新增", summary['added'])
                    col3.metric("刪除", summary['removed'])
                st.markdown(format_diff_for_display(changes))
        except Exception as e:
            logger.error(f"Error in changes preview: {e}", exc_info=True)
            st.warning("無法產生變更預覽")

    @staticmethod
    def _render_save_button():
        if st.button("💾 儲存", type="primary", disabled=SessionManager.is_submitting()):
            SearchView.handle_save()

    @staticmethod
    def handle_save() -> bool:
        """Persist the edited record with action=update."""
        document = SessionManager.get_document()
        if not document:
            Notify.error("沒有資料可儲存")
            return False

        payload = transform_for_backend(document, SessionManager.is_booking_enabled())

        if SessionManager.is_dev_mode():
            logger.info("=== SAVE SHOP DATA (DEV MODE) ===")
            logger.info(json.dumps(payload, ensure_ascii=False, indent=2))
            Notify.info("開發模式下不會實際儲存至伺服器")
            return False

        SessionManager.set_submitting(True)
        try:
            with show_loading("儲存中..."):
                response = ShopApiClient.from_config().update_shop_data(payload)
            if not response.success:
                notify_api_failure(response)
                return False

            SessionManager.load_record(payload)
            Notify.success("儲存成功")
            return True

        except Exception as e:
            ErrorHandler.handle_error(e, "shop save", ErrorType.BACKEND, user_message="儲存失敗")
            return False
        finally:
            SessionManager.set_submitting(False)
