"""
FastAPI dependencies for request processing.

Dependencies hand endpoints the process-wide settings, the vision provider
and a pipeline built on top of it.
"""
