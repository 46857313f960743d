"""
Attendance QR generator main application.
"""
import logging
import streamlit as st

from qr_attendance.models.form_state import FormState
from qr_attendance.ui.attendance_form import STATE_KEY, render_attendance_form

logger = logging.getLogger(__name__)


# Streamlit page configuration
st.set_page_config(
    page_title="Attendance QR",
    page_icon="🎫",
    layout="centered",
    initial_sidebar_state="collapsed"
)


def initialize_session_state():
    """Initialize session state defaults."""
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = FormState()


def apply_custom_css():
    """Apply custom CSS styles."""
    st.markdown("""
        <style>
        .stApp {
            background: linear-gradient(135deg, #f1c40f 0%, #f1c40f 50%, #e74c3c 50%, #e74c3c 100%);
        }

        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}

        [data-testid="stAppViewContainer"] > .main .block-container {
            background: #fdfefe;
            border-radius: 20px;
            padding-top: 1.5rem;
        }

        .stTextInput > div > div > input {
            background: white;
            border: 1px solid #e74c3c;
            border-radius: 10px;
        }

        .stButton > button {
            border-radius: 20px;
            font-weight: bold;
        }

        .stButton > button[kind="primary"] {
            background: #e74c3c;
            color: #fdfefe;
        }
        </style>
    """, unsafe_allow_html=True)


def render_current_page():
    """Render the form page inside an error boundary."""
    try:
        render_attendance_form()

    except Exception as e:
        logger.exception("Unhandled exception while rendering page")
        st.error("Something went wrong, please try again")

        with st.expander("🔍 Error details"):
            st.code(str(e))

        if st.button("Reset form"):
            st.session_state[STATE_KEY] = FormState()
            st.rerun()


def main():
    """Application entry point."""
    try:
        initialize_session_state()
        apply_custom_css()
        render_current_page()
    except Exception as e:
        logger.exception("Unhandled exception during app execution")
        st.error("The application failed, please reload the page")
        st.code(str(e))

        if st.button("🔄 Reload"):
            st.session_state.clear()
            st.rerun()


if __name__ == "__main__":
    main()
