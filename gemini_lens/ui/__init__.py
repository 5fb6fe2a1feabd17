"""Streamlit views. ``app.py`` is the script passed to ``streamlit run``."""
