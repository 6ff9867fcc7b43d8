"""High-level entry point to the Moodle web service.

Usage:
    from moodle_ws.core.moodle import MoodleAPI
    
    mdl = MoodleAPI()                      # reads ini/credentials.ini
    new_user = mdl.users.create_user({
        "username": "test001",
        "firstname": "Test",
        "lastname": "Last",
        "email": "test@test.com",
    })
    if new_user.success:
        mdl.enrolments.enrol_user({"roleid": 5, "userid": new_user.response["id"], "courseid": 2})
"""
from __future__ import annotations
import copy
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import requests

from moodle_ws.config.settings import ClientSettings, load_settings
from .client import MoodleClient
from .enrolments import EnrolmentService
from .functions import AVAILABLE_FUNCTIONS
from .responses import Result
from .users import UserService


class MoodleAPI:
    """Facade composing the transport client with the domain services."""
    
    def __init__(
        self,
        credentials_location: Union[str, Path, None] = None,
        *,
        settings: Optional[ClientSettings] = None,
        client: Optional[MoodleClient] = None,
        session: Optional[requests.Session] = None,
    ):
        """Build the facade.
        
        Args:
            credentials_location: INI file to load when neither settings nor client are given
            settings: Pre-loaded settings
            client: Pre-built transport client (takes precedence)
            session: requests session passed to the client built here
            
        Raises:
            ConfigError: If credentials cannot be loaded
        """
        self._owns_client = client is None
        if client is None:
            settings = settings or load_settings(credentials_location)
            client = MoodleClient.from_settings(settings, session=session)
        self.client = client
        self.users = UserService(client)
        self.enrolments = EnrolmentService(client)

    def close(self) -> None:
        """Release the HTTP session; injected clients and sessions are left open."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "MoodleAPI":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def any(self, function_name: str, payload: Optional[Mapping[str, Any]] = None) -> Result:
        """Call any web service function not covered by the services."""
        return self.client.call(function_name, payload or {})
    
    @staticmethod
    def available() -> dict[str, dict[str, Any]]:
        """Return the reference catalog of web service functions."""
        return copy.deepcopy(AVAILABLE_FUNCTIONS)
