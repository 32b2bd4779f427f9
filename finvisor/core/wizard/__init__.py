"""
Wizard
======

Scripted eight-step demo flow: step scripts, the timeline player that
reveals them, and the session controller that gates progression.
"""
