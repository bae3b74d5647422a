"""
Pydantic models for API request/response schemas.

These models define the envelope callers see. They are separate from the
pipeline's internal types to keep the HTTP contract stable.
"""
