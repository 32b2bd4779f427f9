"""
FastAPI REST Endpoints
======================

HTTP endpoints for the appeal workflow. Every route answers with the
``{success, data | error}`` envelope.

Endpoints:
- /api/chat, /api/documents, /api/strategy, /api/research, /api/appeal
- /api/submit, /api/payment, /api/zoom, /api/analytics
- /api/wizard: scripted demo wizard sessions and SSE streams
- /health: Health check endpoint
"""
