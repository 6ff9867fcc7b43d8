"""Moodle user management operations."""
from __future__ import annotations
import logging
from typing import Any, Iterable, Mapping, Optional

from .client import MoodleClient
from .responses import (
    EMAIL_EXISTS,
    USERNAME_EXISTS,
    EmptyAck,
    RemoteException,
    Result,
    Success,
    is_empty_body,
)

logger = logging.getLogger(__name__)

CREATE_FUNCTION = "core_user_create_users"
UPDATE_FUNCTION = "core_user_update_users"
GET_FUNCTION = "core_user_get_users"
DELETE_FUNCTION = "core_user_delete_users"

REQUIRED_CREATE_FIELDS = ("username", "firstname", "lastname", "email")
UPDATABLE_FIELDS = ("username", "firstname", "lastname", "email", "idnumber", "password")
USER_DEFAULTS = {"lang": "en", "mailformat": 1, "auth": "manual"}


def _blank(value: Any) -> bool:
    """Empty in the PHP sense: None, "", "0", 0, False or an empty container."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() in ("", "0")
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def _ensure_batch(users: Any) -> list:
    if isinstance(users, (str, bytes)) or isinstance(users, Mapping) or not isinstance(users, Iterable):
        raise TypeError("Expected a list of users")
    return list(users)


def _user_id(value: Any) -> int:
    """Convert ``value`` to a user id without truncating or coercing booleans."""
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"User id must be numeric, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"User id must be numeric, got {value!r}") from exc


def _with_defaults(user: Mapping[str, Any]) -> dict[str, Any]:
    return {
        key: user[key] if not _blank(user.get(key)) else default
        for key, default in USER_DEFAULTS.items()
    }


def build_create_entry(user: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Shape one user for core_user_create_users, or None if a required field is missing."""
    if any(_blank(user.get(field)) for field in REQUIRED_CREATE_FIELDS):
        return None

    entry: dict[str, Any] = {field: user[field] for field in REQUIRED_CREATE_FIELDS}
    entry["idnumber"] = "" if _blank(user.get("idnumber")) else user["idnumber"]
    entry.update(_with_defaults(user))
    if _blank(user.get("password")):
        entry["createpassword"] = 1
    else:
        entry["password"] = user["password"]
    return entry


def build_update_entry(user: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Shape one user for core_user_update_users, or None if ``id`` is missing.

    Only supplied fields are sent, so an update never blanks a profile field.
    """
    if _blank(user.get("id")):
        return None

    entry: dict[str, Any] = {"id": user["id"]}
    for field in UPDATABLE_FIELDS:
        if not _blank(user.get(field)):
            entry[field] = user[field]
    entry.update(_with_defaults(user))
    return entry


def build_criteria(search_params: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Turn ``{"username": "x"}`` into ``[{"key": "username", "value": "x"}]``."""
    return [{"key": key, "value": value} for key, value in search_params.items()]


class UserService:
    """Service for managing Moodle users."""

    def __init__(self, client: MoodleClient):
        """Initialize user service.

        Args:
            client: Moodle transport client
        """
        self.client = client

    def create_users(self, users: Iterable[Mapping[str, Any]]) -> Result:
        """Create users from a list of user mappings.

        Entries missing username, firstname, lastname or email are skipped;
        idnumber, lang, mailformat and auth are defaulted.

        When Moodle rejects the batch, each submitted user is checked for an
        existing username or email so the failure can be reported as
        ``username_exists``/``email_exists``.

        Args:
            users: e.g. [{"username": "likel", "firstname": "Liam",
                "lastname": "Kelly", "email": "email@email.com"}]

        Returns:
            Success with the created [{id, username}] list, or a failure
        """
        entries = []
        for user in _ensure_batch(users):
            entry = build_create_entry(user)
            if entry is None:
                logger.debug("Skipping user without username/firstname/lastname/email")
                continue
            entries.append(entry)

        result = self.client.call(CREATE_FUNCTION, {"users": entries})
        if result.success:
            return result

        conflict = self._find_conflict(entries)
        return conflict or result

    def create_user(self, user: Mapping[str, Any]) -> Result:
        """Create a single user, returning only its id and username."""
        result = self.create_users([user])
        if not isinstance(result, Success):
            return result

        created = result.response
        if not isinstance(created, list) or not created:
            return result
        first = created[0]
        return Success(response={"id": first.get("id"), "username": first.get("username")})

    def update_users(self, users: Iterable[Mapping[str, Any]]) -> Result:
        """Update users from a list of mappings; entries without ``id`` are skipped.

        Moodle answers a successful update with an empty body, which decodes
        as "not an array"; that case is reported as EmptyAck("updated").
        """
        entries = [entry for entry in map(build_update_entry, _ensure_batch(users)) if entry is not None]
        result = self.client.call(UPDATE_FUNCTION, {"users": entries})
        if is_empty_body(result):
            return EmptyAck(response="updated")
        return result

    def update_user(self, user: Mapping[str, Any]) -> Result:
        return self.update_users([user])

    def get_users(self, search_params: Mapping[str, Any]) -> Result:
        """Search users by any of id, firstname, lastname, idnumber, username, email."""
        if not isinstance(search_params, Mapping):
            raise TypeError("Expected a mapping of search fields")
        return self.client.call(GET_FUNCTION, {"criteria": build_criteria(search_params)})

    def get_user(self, search_params: Mapping[str, Any]) -> Result:
        """Search a single user profile by ``id`` and/or ``username`` only."""
        search_params = search_params or {}
        user_search = {
            key: search_params[key]
            for key in ("id", "username")
            if not _blank(search_params.get(key))
        }
        return self.get_users(user_search)

    def delete_users(self, user_ids: Iterable[Any]) -> Result:
        """Delete users by id; an empty answer is reported as EmptyAck("deleted")."""
        result = self.client.call(DELETE_FUNCTION, {"userids": _ensure_batch(user_ids)})
        if is_empty_body(result):
            return EmptyAck(response="deleted")
        return result

    def delete_user(self, user_id: Any) -> Result:
        return self.delete_users([_user_id(user_id)])

    def user_exists(self, search_params: Mapping[str, Any]) -> bool:
        """Return True if the search finds at least one user."""
        result = self.get_users(search_params)
        if not isinstance(result, Success) or not isinstance(result.response, dict):
            return False
        return bool(result.response.get("users"))

    def _find_conflict(self, entries: list[dict[str, Any]]) -> Optional[RemoteException]:
        """Report the first submitted user whose username or email is taken."""
        for entry in entries:
            if self.user_exists({"username": entry["username"]}):
                logger.info("Username '%s' already exists", entry["username"])
                return RemoteException(message="Username already exists", short=USERNAME_EXISTS)
            if self.user_exists({"email": entry["email"]}):
                logger.info("Email '%s' already exists", entry["email"])
                return RemoteException(message="Email already exists", short=EMAIL_EXISTS)
        return None
