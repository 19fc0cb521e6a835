"""
UI feedback utilities for the shop admin console.
Toast notifications for routine outcomes and a blocking alert for conflicts.
"""

import logging
from contextlib import contextmanager
from typing import Optional

import streamlit as st

from .shop_api import ShopApiResponse, error_channel, user_message

logger = logging.getLogger(__name__)

ICONS = {
    'success': '✅',
    'info': 'ℹ️',
    'warning': '⚠️',
    'error': '❌'
}


class Notify:
    """
    Toast notification helper.

    The API includes: success, info, error, once.

    Usage:
    Notify.success("店家已成功建立")
    Notify.error("API 連線失敗")
    """

    @staticmethod
    def _display_notification(message: str, notification_type: str = 'info') -> None:
        icon = ICONS.get(notification_type, ICONS['info'])
        logger.debug(f"Notify [{notification_type}]: {message}")

        try:
            st.toast(message, icon=icon)
        except Exception as e:
            # Toasts need a running script context; fall back to inline messages
            logger.error(f"Error using st.toast: {e}", exc_info=True)
            full_message = f"{icon} {message}"
            if notification_type == 'success':
                st.success(full_message)
            elif notification_type == 'warning':
                st.warning(full_message)
            elif notification_type == 'error':
                st.error(full_message)
            else:
                st.info(full_message)

    @staticmethod
    def success(message: str) -> None:
        """Show success notification."""
        Notify._display_notification(message, 'success')

    @staticmethod
    def info(message: str) -> None:
        """Show info notification."""
        Notify._display_notification(message, 'info')

    @staticmethod
    def error(message: str) -> None:
        """Show error notification."""
        Notify._display_notification(message, 'error')

    @staticmethod
    def once(message: str, notification_type: str = 'info', key: str = 'default_once') -> bool:
        """
        Show notification only once per session for the given key.
        Returns True if shown, False if already shown.
        """
        if key not in st.session_state:
            st.session_state[key] = False
        if not st.session_state[key]:
            Notify._display_notification(message, notification_type)
            st.session_state[key] = True
            return True
        return False


class Alert:
    """Blocking modal alert."""

    @staticmethod
    def show(title: str, message: str, detail: Optional[str] = None) -> None:
        """Open a modal that stays until the user dismisses it."""
        @st.dialog(title)
        def alert_dialog():
            st.error(message)
            if detail:
                st.write(detail)
            if st.button("確定", type="primary"):
                st.rerun()

        logger.info(f"Alert shown: {title} - {message} {detail or ''}".strip())
        alert_dialog()


def notify_api_failure(response: ShopApiResponse) -> None:
    """Route a failed API response to an alert (duplicate data) or a toast."""
    logger.warning(f"API failure: code={response.error_code} error={response.error} detail={response.detail}")
    if error_channel(response) == "alert":
        Alert.show("資料重複", f"資料重複 (Data Duplicate): {response.detail or 'Unknown item'}")
    else:
        Notify.error(user_message(response))


@contextmanager
def show_loading(message: str = "處理中..."):
    """Spinner while a blocking call runs."""
    with st.spinner(message):
        yield
