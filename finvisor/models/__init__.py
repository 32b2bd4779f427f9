"""
Data Models
===========

Pydantic request/response models shared by the API routes and providers.
"""
