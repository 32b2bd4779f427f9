"""
Providers
=========

Clients for the external AI, automation and payment services Finvisor
orchestrates. Each client is created lazily and closed on shutdown.
"""
