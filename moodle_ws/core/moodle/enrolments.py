"""Moodle course enrolment operations."""
from __future__ import annotations
from typing import Any, Mapping

from .client import MoodleClient
from .responses import EmptyAck, Result, is_empty_body

ENROL_FUNCTION = "enrol_manual_enrol_users"
USER_COURSES_FUNCTION = "core_enrol_get_users_courses"

REQUIRED_ENROL_FIELDS = ("roleid", "userid", "courseid")
STUDENT_ROLE_ID = 5


class EnrolmentService:
    """Service for manual course enrolments."""
    
    def __init__(self, client: MoodleClient):
        self.client = client
    
    def enrol_user(self, enrolment: Mapping[str, Any]) -> Result:
        """Enrol a user into a course through the manual enrolment plugin.
        
        Args:
            enrolment: {"roleid": 5, "userid": 12, "courseid": 2}, optionally
                with "timestart", "timeend" and "suspend"
            
        Returns:
            EmptyAck("enrolled") on success, otherwise the failure
            
        Raises:
            ValueError: If roleid, userid or courseid is missing
        """
        missing = [field for field in REQUIRED_ENROL_FIELDS if enrolment.get(field) in (None, "")]
        if missing:
            raise ValueError(f"Enrolment is missing: {', '.join(missing)}")
        
        entry = {field: enrolment[field] for field in REQUIRED_ENROL_FIELDS}
        for optional in ("timestart", "timeend", "suspend"):
            if enrolment.get(optional) is not None:
                entry[optional] = enrolment[optional]
        
        result = self.client.call(ENROL_FUNCTION, {"enrolments": [entry]})
        if is_empty_body(result):
            return EmptyAck(response="enrolled")
        return result
    
    def get_users_courses(self, user_id: Any) -> Result:
        """List the courses a user is enrolled in."""
        return self.client.call(USER_COURSES_FUNCTION, {"userid": user_id})
