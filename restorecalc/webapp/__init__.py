"""Streamlit web app for the restoration cost form."""
