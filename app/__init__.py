"""Stremio Groups FastAPI application package."""
