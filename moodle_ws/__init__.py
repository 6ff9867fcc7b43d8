"""Moodle web service client package.

To use the high-level facade:
    from moodle_ws.core.moodle import MoodleAPI

To load credentials only:
    from moodle_ws.config import load_credentials
"""
