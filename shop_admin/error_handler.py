"""
Error handling utilities for the shop admin console.
Maps exceptions to user-friendly messages and shows them in the UI.
"""

import logging
import traceback
from typing import Any, Callable, Optional

import pandas as pd
import requests
import streamlit as st
import yaml

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    SCHEMA = "schema"
    NETWORK = "network"
    BACKEND = "backend"
    SYSTEM = "system"


ERROR_MESSAGES = {
    ErrorType.SCHEMA: {
        requests.RequestException: "📋 無法取得表單結構，請確認網路連線。",
        pd.errors.ParserError: "📋 表單結構格式錯誤，請檢查 CSV 檔案。",
        FileNotFoundError: "📋 找不到表單結構檔案。",
        "default": "📋 載入表單結構失敗"
    },

    ErrorType.NETWORK: {
        requests.Timeout: "⏱️ 連線逾時，請稍後再試。",
        requests.ConnectionError: "🌐 API 連線失敗",
        "default": "🌐 API 連線失敗"
    },

    ErrorType.BACKEND: {
        "default": "💥 系統錯誤"
    },

    ErrorType.SYSTEM: {
        yaml.YAMLError: "💻 設定檔格式錯誤。",
        ImportError: "💻 缺少必要元件，請聯絡系統管理員。",
        "default": "💻 系統錯誤，請稍後再試。"
    }
}


class ErrorHandler:
    """Error handling for the shop admin console."""

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False
    ) -> None:
        """
        Handle errors with user-friendly messages.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants)
            user_message: Custom user-friendly message
            show_details: Whether to show technical details
        """
        logger.error(f"Error in {context}: {str(error)}", exc_info=True)

        if not user_message:
            user_message = ErrorHandler.get_user_friendly_message(error, error_type)

        ErrorHandler._display_error(user_message, error, context, show_details)

    @staticmethod
    def get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Pick the message for the most specific matching exception class."""
        type_messages = ERROR_MESSAGES.get(error_type, ERROR_MESSAGES[ErrorType.SYSTEM])

        for exception_type, message in type_messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return type_messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def _display_error(user_message: str, error: Exception, context: str, show_details: bool = False) -> None:
        st.error(user_message)

        if show_details:
            with st.expander("🔍 Technical Details"):
                st.write(f"**Error Type:** {type(error).__name__}")
                st.write(f"**Context:** {context}")
                st.write(f"**Error Message:** {str(error)}")
                st.code(traceback.format_exc())

    @staticmethod
    def with_error_handling(
        func: Callable,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False,
        default_return: Any = None
    ) -> Any:
        """
        Run an operation, handling any exception.

        Args:
            func: Function to execute
            context: Context description
            error_type: Type of error expected
            user_message: Custom user message
            show_details: Show technical details
            default_return: Value to return on error

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type, user_message, show_details)
            return default_return

