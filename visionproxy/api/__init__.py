"""
FastAPI application layer for the vision proxy.

This module exposes the HTTP endpoints that accept images by URL or upload,
run them through the analysis pipeline and return the JSON envelope.
"""
