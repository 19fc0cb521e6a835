"""
Create view for the shop admin console.
Builds a new shop record from a blank form and submits it with action=add.
"""

import json
import logging
from typing import List

import streamlit as st

from .caller_manager import add_caller
from .config_loader import get_config_value
from .error_handler import ErrorHandler, ErrorType
from .schema_loader import FieldDescriptor, load_schema
from .session_manager import SessionManager
from .shop_api import ShopApiClient
from .shop_form import ShopForm
from .submission_transformer import transform_for_backend, validate_submission
from .ui_feedback import Notify, notify_api_failure, show_loading

logger = logging.getLogger(__name__)


class CreateView:
    """Manages the create-shop interface."""

    @staticmethod
    def render():
        """Render the complete create view."""
        st.header("🏪 新增店家")

        descriptors = CreateView._load_descriptors()
        CreateView.ensure_initialized()

        ShopForm.render(descriptors, view="create")

        st.divider()
        col1, col2 = st.columns([1, 1])
        with col1:
            submitted = st.button("✅ 建立店家", type="primary", disabled=SessionManager.is_submitting(),
                                  use_container_width=True)
        with col2:
            cancelled = st.button("取消", use_container_width=True)

        if submitted and CreateView.handle_submit():
            st.rerun()
        if cancelled:
            SessionManager.set_current_page("search")
            st.rerun()

    @staticmethod
    def _load_descriptors() -> List[FieldDescriptor]:
        schema_name = get_config_value("schema", "create_schema", "ui-schema-create.csv")
        descriptors = ErrorHandler.with_error_handling(
            lambda: load_schema(schema_name),
            "schema load",
            ErrorType.SCHEMA,
            default_return=[]
        )
        if not descriptors:
            Notify.once("載入表單結構失敗", notification_type="error", key="create_schema_error_notified")
        SessionManager.set_schema_fields(descriptors)
        return descriptors

    @staticmethod
    def ensure_initialized():
        """Start from a blank record holding one caller."""
        if SessionManager.get_document() is None:
            SessionManager.reset_form()

        if not SessionManager.get_caller_ids():
            document, caller_id = add_caller(SessionManager.get_document())
            SessionManager.set_document(document)
            SessionManager.set_selected_caller(caller_id)

    @staticmethod
    def handle_submit() -> bool:
        """
        Validate, transform and submit the new record.

        Returns:
            True when the form was reset (success, or dev-mode dry run)
        """
        document = SessionManager.get_document() or {}

        errors = validate_submission(document)
        if errors:
            for error in errors:
                Notify.error(error)
            return False

        payload = transform_for_backend(document, SessionManager.is_booking_enabled())

        if SessionManager.is_dev_mode():
            logger.info("=== CREATE SHOP DATA (DEV MODE) ===")
            logger.info(json.dumps(payload, ensure_ascii=False, indent=2))
            Notify.success("資料載入成功")
            SessionManager.reset_form()
            return True

        SessionManager.set_submitting(True)
        try:
            with show_loading("建立中..."):
                response = ShopApiClient.from_config().add_shop_data(payload)
            if not response.success:
                notify_api_failure(response)
                return False

            Notify.success("店家已成功建立")
            SessionManager.set_current_page("search")
            return True

        except Exception as e:
            ErrorHandler.handle_error(e, "shop create", ErrorType.BACKEND)
            return False
        finally:
            SessionManager.set_submitting(False)
