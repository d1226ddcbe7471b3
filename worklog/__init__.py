"""
Worklog – personal work-time tracker.
"""

__version__ = "0.1.0"
