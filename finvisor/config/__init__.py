"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application settings, provider credentials and pacing knobs
- logging: Structured logging configuration
"""
