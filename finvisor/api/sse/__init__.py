"""
Server-Sent Events
==================

SSE formatting used to stream wizard step reveals to clients.
"""
