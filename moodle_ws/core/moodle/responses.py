"""Result envelope and response normalization for Moodle web service calls.

Every remote call ends in exactly one of these variants:

- Success: decoded payload (dict or list)
- EmptyAck: the function answered with an empty body, which Moodle does
  for void functions such as core_user_update_users
- RemoteException: Moodle rejected the call with its exception envelope
- TransportFailure: the body could not be decoded, or HTTP itself failed

Callers branch on ``result.success``.
"""
from __future__ import annotations
import json
import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

ACCESS_CONTROL_MESSAGE = "Access control exception"
FUNCTION_NOT_ADDED_MESSAGE = "The function has not been added to the webservice on Moodle"
NOT_ARRAY_MESSAGE = "Response was not an array"

# Short codes
FUNCTION_NOT_ADDED = "function_not_added"
GENERIC_ERROR = "generic_error"
NOT_ARRAY = "not_array"
TRANSPORT_ERROR = "transport_error"
HTTP_ERROR = "http_error"
USERNAME_EXISTS = "username_exists"
EMAIL_EXISTS = "email_exists"

KIND_ACCESS_DENIED = "access_denied"
KIND_GENERIC = "generic"


@dataclass(frozen=True)
class Result(ABC):
    """Base of the result envelope."""

    @property
    def success(self) -> bool:
        return False

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form, as printed by the CLI."""


@dataclass(frozen=True)
class Success(Result):
    response: Any

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "response": self.response}


@dataclass(frozen=True)
class EmptyAck(Result):
    """The remote function returned nothing; Moodle's way of saying "done"."""
    response: str

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "response": self.response}


@dataclass(frozen=True)
class Failure(Result):
    message: str
    short: str

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, "short": self.short}


@dataclass(frozen=True)
class RemoteException(Failure):
    """Moodle answered with ``{exception, errorcode, message}``."""
    kind: str = KIND_GENERIC
    errorcode: Optional[str] = None
    exception: Optional[str] = None


@dataclass(frozen=True)
class TransportFailure(Failure):
    status_code: Optional[int] = None


def not_array() -> TransportFailure:
    return TransportFailure(message=NOT_ARRAY_MESSAGE, short=NOT_ARRAY)


def is_empty_body(result: Result) -> bool:
    """True when the call produced an undecodable (usually empty) body."""
    return isinstance(result, TransportFailure) and result.short == NOT_ARRAY


# ─────────────────────────────────────────────────────────────────────────────
# Decoding
# ─────────────────────────────────────────────────────────────────────────────
def decode_json(raw_body: str) -> Any:
    """Decode a JSON body, returning None when it is not valid JSON."""
    if not raw_body or not raw_body.strip():
        return None
    try:
        return json.loads(raw_body)
    except ValueError:
        return None


def decode_xml(raw_body: str) -> Any:
    """Decode Moodle's REST XML format into plain Python structures.

    ``<RESPONSE>`` wraps one of ``<MULTIPLE>`` (list), ``<SINGLE>`` (dict of
    ``<KEY name="...">``) or ``<VALUE>`` (scalar). ``<EXCEPTION>`` is turned
    into the same ``{exception, errorcode, message, debuginfo}`` dict the JSON
    format produces. Returns None when the body is empty or unparsable.
    """
    if not raw_body or not raw_body.strip():
        return None
    try:
        root = ET.fromstring(raw_body.strip())
    except ET.ParseError:
        return None

    if root.tag == "EXCEPTION":
        return {
            "exception": root.get("class") or "moodle_exception",
            "errorcode": root.findtext("ERRORCODE"),
            "message": root.findtext("MESSAGE") or "",
            "debuginfo": root.findtext("DEBUGINFO"),
        }

    if root.tag != "RESPONSE":
        return None
    children = list(root)
    if not children:
        return None
    return _xml_node_to_python(children[0])


def _xml_node_to_python(node: ET.Element) -> Any:
    if node.tag == "MULTIPLE":
        return [_xml_node_to_python(child) for child in node]
    if node.tag == "SINGLE":
        single: dict[str, Any] = {}
        for key in node.findall("KEY"):
            value_nodes = list(key)
            single[key.get("name", "")] = _xml_node_to_python(value_nodes[0]) if value_nodes else None
        return single
    if node.tag == "VALUE":
        if node.get("null") == "null":
            return None
        return node.text or ""
    return None


def decode(raw_body: str, rest_format: str = "json") -> Any:
    if rest_format == "xml":
        return decode_xml(raw_body)
    return decode_json(raw_body)


# ─────────────────────────────────────────────────────────────────────────────
# Classification
# ─────────────────────────────────────────────────────────────────────────────
def classify(decoded: Any) -> Result:
    """Turn a decoded body into a result variant."""
    if not isinstance(decoded, (dict, list)):
        return not_array()

    if isinstance(decoded, dict) and decoded.get("exception"):
        message = decoded.get("message")
        message = "" if message is None else str(message)
        errorcode = decoded.get("errorcode")
        exception = decoded.get("exception")
        exception_name = exception if isinstance(exception, str) else None

        if message == ACCESS_CONTROL_MESSAGE:
            return RemoteException(
                message=FUNCTION_NOT_ADDED_MESSAGE,
                short=FUNCTION_NOT_ADDED,
                kind=KIND_ACCESS_DENIED,
                errorcode=errorcode,
                exception=exception_name,
            )
        return RemoteException(
            message=message,
            short=GENERIC_ERROR,
            kind=KIND_GENERIC,
            errorcode=errorcode,
            exception=exception_name,
        )

    return Success(response=decoded)


def normalize(raw_body: str, rest_format: str = "json") -> Result:
    """Decode ``raw_body`` per ``rest_format`` and classify it.

    Args:
        raw_body: Response body as text
        rest_format: "json" or "xml"

    Returns:
        Success, RemoteException or TransportFailure("Response was not an array")
    """
    result = classify(decode(raw_body, rest_format))
    if isinstance(result, RemoteException):
        logger.info("Moodle rejected call (%s): %s", result.short, result.message)
    return result
