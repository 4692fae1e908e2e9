"""
E-Pustaka school library: Streamlit UI entry point.
"""

import atexit

import streamlit as st

# Load .env first so the data directory, mirror URL and API keys are picked up
from epustaka.utils.config import app_name, load_config, log_file, log_level
load_config()

from epustaka.services import auth
from epustaka.services.library_service import LibraryService
from epustaka.services.report_service import ReportService
from epustaka.infrastructure.sync.sheets_mirror import SheetsMirror
from epustaka.utils.logger import setup_logger, get_logger
from epustaka.ui.pages import (
    render_books,
    render_dashboard,
    render_loans,
    render_login,
    render_members,
    render_reports,
    render_sync_status,
)

setup_logger("epustaka", level=log_level(), log_file=log_file())
log = get_logger()

st.set_page_config(page_title=app_name(), layout="wide")
st.title(app_name())


# One mirror (and one push worker thread) per process, shared by every session
@st.cache_resource
def get_sheets_mirror() -> SheetsMirror:
    mirror = SheetsMirror()
    atexit.register(mirror.shutdown, wait=False)
    return mirror


# One service per browser session; local data shows first, then the mirror copy replaces it.
if "library" not in st.session_state:
    service = LibraryService.from_config(mirror=get_sheets_mirror())
    service.load()
    with st.spinner("Connecting to the spreadsheet…"):
        applied = service.refresh_from_remote()
    if applied:
        log.info("Startup sync applied: %s", applied)
    st.session_state.library = service
if "user" not in st.session_state:
    st.session_state.user = None

service: LibraryService = st.session_state.library


def _login(username: str, password: str) -> bool:
    user = auth.authenticate(username, password)
    if user is None:
        return False
    st.session_state.user = user
    return True


user = st.session_state.user
if user is None:
    render_login(_login)
    st.stop()

pages = ["Dashboard", "Books", "Loans"]
if auth.require_role(user, ["ADMIN"]):
    pages += ["Members", "Reports"]

with st.sidebar:
    st.header(user.name)
    st.caption(f"Role: {user.role.value}")
    page = st.radio("Menu", pages, label_visibility="collapsed")
    st.divider()
    render_sync_status(service)
    if st.button("Sign out", use_container_width=True):
        st.session_state.user = None
        st.rerun()

st.header(page)
if page == "Dashboard":
    render_dashboard(service)
elif page == "Books":
    render_books(service, user)
elif page == "Loans":
    render_loans(service, user)
elif page == "Members":
    render_members(service)
elif page == "Reports":
    render_reports(service, ReportService(service))
