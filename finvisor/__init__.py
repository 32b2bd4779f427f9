"""
Finvisor
========

AI financial-aid appeal demo service.

This package provides:
- FastAPI REST endpoints wrapping the external AI and automation providers
- Provider clients for chat, research, letter generation, submission and payments
- A scripted eight-step appeal wizard streamed over Server-Sent Events
"""

__version__ = "1.0.0"
__author__ = "Finvisor Team"
