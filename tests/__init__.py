"""
Test Suite
==========

Test suite matching the finvisor/ package structure.

Test Categories:
- unit: Providers, appeal helpers, wizard engine and SSE formatting
- integration: HTTP endpoints, analytics aggregation and the wizard walkthrough
"""
