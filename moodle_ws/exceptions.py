"""Moodle web service exceptions.

Remote rejections and transport failures are returned as result values
(see moodle_ws.core.moodle.responses); only configuration problems raise.
"""


class MoodleError(Exception):
    """Base exception for all Moodle client operations."""
    pass


class ConfigError(MoodleError):
    """Credentials file missing, unreadable or incomplete.
    
    Attributes:
        source: Location of the credentials file that failed to load
    """
    
    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message)
