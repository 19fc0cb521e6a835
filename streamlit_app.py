"""
Main Streamlit application for the shop admin console.
Schema-driven editor for shop records of the queue-calling service.
"""

import logging

import streamlit as st

from shop_admin.config_loader import get_config_summary, get_config_value, load_config, validate_config


def get_logging_level(level_str):
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


# Configure logging dynamically from config
try:
    log_level_str = get_config_value('logging', 'level', 'INFO')
    logging.basicConfig(level=get_logging_level(log_level_str))
    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured to level: {log_level_str}")
except Exception as e:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to configure logging from config: {e}, using INFO level")

# Load configuration early
try:
    config = load_config()
    page_title = get_config_value('ui', 'page_title', '叫叫我顧客管理系統')
    logger.info(f"Starting app version: {get_config_value('app', 'version', 'Unknown')}")
except Exception as e:
    logger.error(f"Failed to load configuration: {e}")
    config = {}
    page_title = "叫叫我顧客管理系統"

# Page configuration
st.set_page_config(
    page_title=page_title,
    page_icon="🏪",
    layout="centered",
    initial_sidebar_state="collapsed"
)


def main():
    """Main application entry point."""
    from shop_admin.error_handler import ErrorHandler, ErrorType
    from shop_admin.session_manager import SessionManager

    try:
        SessionManager.initialize(
            dev_mode=bool(get_config_value('dev_mode', 'enabled', True)),
            default_shop_id=get_config_value('ui', 'default_shop_id', 'tawe_zz001')
        )

        render_header()
        render_sidebar()
        render_main_content()

    except Exception as e:
        ErrorHandler.handle_error(e, "application startup", ErrorType.SYSTEM)


def render_header():
    """Render title, dev-mode switch and view switcher."""
    from shop_admin.session_manager import SessionManager

    page = SessionManager.get_current_page()

    col1, col2, col3 = st.columns([3, 1, 1], vertical_alignment="center")
    with col1:
        st.title(page_title)
        st.caption("新增店家" if page == 'create' else "顧客資訊輸入")
    with col2:
        dev_mode = st.toggle("開發模式", value=SessionManager.is_dev_mode())
        if dev_mode != SessionManager.is_dev_mode():
            SessionManager.set_dev_mode(dev_mode)
    with col3:
        if st.button("取消" if page == 'create' else "新增店家", use_container_width=True):
            SessionManager.set_current_page('search' if page == 'create' else 'create')
            st.rerun()


def render_sidebar():
    """Render configuration and session details."""
    from shop_admin.session_manager import SessionManager

    with st.sidebar:
        st.header("系統資訊")

        if not validate_config(config):
            st.warning("⚠️ 設定檔有誤，部分設定使用預設值")

        summary = get_config_summary(config)
        st.caption(f"{summary['app_name']} v{summary['app_version']}")
        st.write(f"**API 模式:** {summary['api_mode']}")
        st.write(f"**API 位址:** {summary['api_url']}")
        st.write(f"**表單結構來源:** {summary['schema_source']}")

        with st.expander("Session"):
            st.json(SessionManager.get_session_info())


def render_main_content():
    """Render the active view."""
    from shop_admin.session_manager import SessionManager

    page = SessionManager.get_current_page()

    if page == 'create':
        from shop_admin.create_view import CreateView
        CreateView.render()
    elif page == 'search':
        from shop_admin.search_view import SearchView
        SearchView.render()
    else:
        st.error(f"Unknown page: {page}")


if __name__ == "__main__":
    main()
