"""
Core Business Logic
==================

Provider integrations and the scripted wizard engine.

Modules:
- providers: Clients for the external AI, automation and payment services
- wizard: Scripted step sequences and the linear wizard controller
"""
