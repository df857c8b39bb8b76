"""FastAPI application for bank connections and sync."""
