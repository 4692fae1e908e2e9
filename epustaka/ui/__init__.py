"""Streamlit rendering for the library pages."""
