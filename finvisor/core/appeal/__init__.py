"""
Appeal Workflow Helpers
=======================

Pure functions behind the API routes: document field extraction and
flagging, strategy prediction features, letter formatting and portal
detection.
"""
