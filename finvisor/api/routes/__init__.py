"""
API Routes
==========

One router per external capability plus the wizard and health routers.
"""
