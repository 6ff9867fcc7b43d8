"""Core logic of the Moodle web service client.

Pure Python with no framework dependencies; the CLI in scripts/mdl.py and
any application code import from here:

    from moodle_ws.core.moodle import MoodleAPI, MoodleClient, UserService
"""
