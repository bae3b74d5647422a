"""Validating proxy in front of the Azure Computer Vision analyze API."""

__version__ = "1.0.0"
