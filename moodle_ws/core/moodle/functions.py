"""Reference catalog of Moodle web service functions.

Data only: the names, a one-line description and the top-level parameters
each function expects. See https://docs.moodle.org/dev/Web_service_API_functions
for the authoritative list.
"""
from __future__ import annotations
from typing import Any

AVAILABLE_FUNCTIONS: dict[str, dict[str, Any]] = {
    "core_webservice_get_site_info": {
        "description": "Return site info, user info and the list of available functions",
        "parameters": {"serviceshortnames": "list[str] (optional)"},
    },
    "core_user_create_users": {
        "description": "Create users",
        "parameters": {
            "users": "list[{username, firstname, lastname, email, password|createpassword, "
                     "auth?, idnumber?, lang?, mailformat?}]",
        },
    },
    "core_user_update_users": {
        "description": "Update users",
        "parameters": {"users": "list[{id, username?, firstname?, lastname?, email?, ...}]"},
    },
    "core_user_get_users": {
        "description": "Search for users matching the criteria",
        "parameters": {"criteria": "list[{key, value}]"},
    },
    "core_user_get_users_by_field": {
        "description": "Retrieve users by a single field",
        "parameters": {"field": "str (id, idnumber, username, email)", "values": "list[str]"},
    },
    "core_user_delete_users": {
        "description": "Delete users",
        "parameters": {"userids": "list[int]"},
    },
    "core_course_get_courses": {
        "description": "Return course details",
        "parameters": {"options": "{ids: list[int]} (optional)"},
    },
    "core_course_create_courses": {
        "description": "Create new courses",
        "parameters": {"courses": "list[{fullname, shortname, categoryid, ...}]"},
    },
    "core_course_update_courses": {
        "description": "Update courses",
        "parameters": {"courses": "list[{id, fullname?, shortname?, ...}]"},
    },
    "core_course_delete_courses": {
        "description": "Delete courses",
        "parameters": {"courseids": "list[int]"},
    },
    "core_course_get_categories": {
        "description": "Return category details",
        "parameters": {"criteria": "list[{key, value}] (optional)", "addsubcategories": "int (optional)"},
    },
    "core_course_get_contents": {
        "description": "Get course contents",
        "parameters": {"courseid": "int", "options": "list[{name, value}] (optional)"},
    },
    "core_enrol_get_users_courses": {
        "description": "Get the list of courses where a user is enrolled in",
        "parameters": {"userid": "int"},
    },
    "core_enrol_get_enrolled_users": {
        "description": "Get enrolled users by course id",
        "parameters": {"courseid": "int", "options": "list[{name, value}] (optional)"},
    },
    "enrol_manual_enrol_users": {
        "description": "Manual enrol users",
        "parameters": {"enrolments": "list[{roleid, userid, courseid, timestart?, timeend?, suspend?}]"},
    },
    "enrol_manual_unenrol_users": {
        "description": "Manual unenrol users",
        "parameters": {"enrolments": "list[{userid, courseid, roleid?}]"},
    },
    "core_group_create_groups": {
        "description": "Create groups",
        "parameters": {"groups": "list[{courseid, name, description, ...}]"},
    },
    "core_group_add_group_members": {
        "description": "Add group members",
        "parameters": {"members": "list[{groupid, userid}]"},
    },
    "core_group_delete_group_members": {
        "description": "Delete group members",
        "parameters": {"members": "list[{groupid, userid}]"},
    },
    "core_role_assign_roles": {
        "description": "Manual role assignments",
        "parameters": {"assignments": "list[{roleid, userid, contextid|contextlevel+instanceid}]"},
    },
    "core_role_unassign_roles": {
        "description": "Manual role unassignments",
        "parameters": {"unassignments": "list[{roleid, userid, contextid|contextlevel+instanceid}]"},
    },
    "core_cohort_add_cohort_members": {
        "description": "Add cohort members",
        "parameters": {"members": "list[{cohorttype: {type, value}, usertype: {type, value}}]"},
    },
    "core_grades_get_grades": {
        "description": "Return grades for a course, optionally for a component and users",
        "parameters": {"courseid": "int", "component": "str (optional)", "userids": "list[int] (optional)"},
    },
    "gradereport_user_get_grade_items": {
        "description": "Return the complete list of grade items for users in a course",
        "parameters": {"courseid": "int", "userid": "int (optional)"},
    },
}
