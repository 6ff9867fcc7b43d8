"""Moodle web service client library.

Architecture:
- client.py: HTTP transport, URL building and parameter encoding
- responses.py: Result envelope and JSON/XML response normalization
- users.py: User lifecycle operations (create, update, search, delete)
- enrolments.py: Manual course enrolment
- functions.py: Reference catalog of web service functions
- api.py: MoodleAPI facade tying the pieces together

Usage:
    from moodle_ws.core.moodle import MoodleAPI
    
    mdl = MoodleAPI("/path/to/credentials.ini")
    if mdl.users.user_exists({"username": "likel"}):
        ...
"""
from moodle_ws.exceptions import ConfigError, MoodleError
from .client import MoodleClient, encode_params, flatten_params
from .responses import (
    EmptyAck,
    Failure,
    RemoteException,
    Result,
    Success,
    TransportFailure,
    normalize,
)
from .users import UserService
from .enrolments import EnrolmentService
from .functions import AVAILABLE_FUNCTIONS
from .api import MoodleAPI

__all__ = [
    # Client
    "MoodleClient",
    "encode_params",
    "flatten_params",
    
    # Exceptions
    "MoodleError",
    "ConfigError",
    
    # Results
    "Result",
    "Success",
    "EmptyAck",
    "Failure",
    "RemoteException",
    "TransportFailure",
    "normalize",
    
    # Services
    "UserService",
    "EnrolmentService",
    "MoodleAPI",
    "AVAILABLE_FUNCTIONS",
]
