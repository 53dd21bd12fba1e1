# app.py
"""
Seller Analytics Dashboard - Main Entry Point

Version: 1.0.0
"""

import streamlit as st
import logging

from seller_analytics.config import config
from seller_analytics.api_client import AnalyticsApiError, get_api_client, reset_api_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Seller Analytics"
APP_ICON = "📊"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1f77b4;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)


# ==================== HELPER FUNCTIONS ====================

def check_api_connection() -> tuple:
    """Returns (ok: bool, error: str)"""
    if not config.get_api_config().get('base_url'):
        return False, "ANALYTICS_API_URL is not configured"
    try:
        get_api_client().get_sync_status()
        return True, None
    except AnalyticsApiError as e:
        return False, str(e)


def show_main_app():
    """Landing page with links to the dashboards"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Сравнение периодов и производные метрики продавца</p>', unsafe_allow_html=True)

    api_ok, api_error = check_api_connection()
    if not api_ok:
        st.error(f"⚠️ Analytics API недоступен: {api_error}")
        st.info("Проверьте ANALYTICS_API_URL / ANALYTICS_API_TOKEN в .env или secrets.toml")
        if st.button("🔄 Переподключить"):
            reset_api_client()
            st.rerun()

    st.markdown("### 📊 Доступные отчёты")

    st.markdown("""
    <div class="info-card">
        <strong>📊 Seller Dashboard</strong><br>
        <span style="color: #666;">Неделя к неделе (WoW) и месяц к месяцу (MoM): выручка, прибыль, маржа,
        заказы, логистика, хранение. Дневная разбивка с итогами и статус синхронизации рекламы.</span>
    </div>
    """, unsafe_allow_html=True)

    if config.is_feature_enabled("DEBUG_MODE"):
        st.markdown("---")
        with st.expander("🔧 Configuration (Debug)"):
            api_config = config.get_api_config()
            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("API", api_config['base_url'])
            with col2:
                st.metric("Token", "Configured" if api_config.get('token') else "Missing")
            with col3:
                st.metric("Environment", "Cloud" if config.is_cloud else "Local")

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    show_main_app()


if __name__ == "__main__":
    main()
else:
    main()
