"""Credential loader for the Moodle web service client.

Credentials live in an INI file with a ``moodle_api`` section:

    [moodle_api]
    url = "https://moodle.example.com"
    token = "0123456789abcdef"
    rest_format = json
    timeout = 30
    verify_ssl = true
"""
from __future__ import annotations
import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from moodle_ws.exceptions import ConfigError

logger = logging.getLogger(__name__)

SECTION = "moodle_api"
DEFAULT_CREDENTIALS_FILE = "ini/credentials.ini"
DEFAULT_TIMEOUT_SECONDS = 30

REST_FORMAT_JSON = "json"
REST_FORMAT_XML = "xml"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Credentials:
    """Moodle site URL, webservice token and preferred response format."""
    url: str
    token: str
    rest_format: str = REST_FORMAT_JSON
    
    def __repr__(self) -> str:
        return f"Credentials(url={self.url!r}, token='***', rest_format={self.rest_format!r})"


@dataclass(frozen=True)
class ClientSettings:
    """Credentials plus the transport knobs read from the same file."""
    credentials: Credentials
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    verify_ssl: bool = True


def default_credentials_location() -> str:
    """Return the credentials file location (MOODLE_CREDENTIALS_FILE or ini/credentials.ini)."""
    return os.environ.get("MOODLE_CREDENTIALS_FILE", "").strip() or DEFAULT_CREDENTIALS_FILE


def normalize_rest_format(value: Optional[str]) -> str:
    """Anything other than "xml" means JSON."""
    if value and _unquote(value).lower() == REST_FORMAT_XML:
        return REST_FORMAT_XML
    return REST_FORMAT_JSON


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1].strip()
    return value


def _read_section(source: Union[str, Path]) -> dict[str, str]:
    """Read the ``moodle_api`` section of an INI file.
    
    Raises:
        ConfigError: If the file is missing, unparsable or has no usable section
    """
    path = Path(source).expanduser()
    if not path.is_file():
        raise ConfigError(f"The credentials file could not be located at {path}", str(path))
    
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with path.open("r", encoding="utf-8") as handle:
            parser.read_file(handle)
    except (OSError, configparser.Error) as exc:
        raise ConfigError(f"The credentials file at {path} could not be read: {exc}", str(path)) from exc
    
    if not parser.has_section(SECTION) or not parser.items(SECTION):
        raise ConfigError(f"The '{SECTION}' section in the credentials file is empty", str(path))
    
    return {key: _unquote(value) for key, value in parser.items(SECTION)}


def load_credentials(
    source: Union[str, Path, None] = None,
    rest_format: Optional[str] = None,
) -> Credentials:
    """Load and validate the credential triple.
    
    Args:
        source: INI file location (defaults to default_credentials_location())
        rest_format: Optional override of the file's ``rest_format``
        
    Returns:
        Credentials with non-empty url and token
        
    Raises:
        ConfigError: If the file, the section, ``url`` or ``token`` is missing
    """
    source = source or default_credentials_location()
    section = _read_section(source)
    return _credentials_from_section(section, str(source), rest_format)


def _credentials_from_section(
    section: dict[str, str],
    source: str,
    rest_format: Optional[str] = None,
) -> Credentials:
    url = section.get("url", "").rstrip("/")
    if not url:
        raise ConfigError("The 'url' variable is empty", source)
    
    token = section.get("token", "")
    if not token:
        raise ConfigError("The 'token' variable is empty", source)
    
    fmt = normalize_rest_format(rest_format if rest_format is not None else section.get("rest_format"))
    return Credentials(url=url, token=token, rest_format=fmt)


def _parse_bool(raw: str, key: str, source: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"The '{key}' variable must be true or false, got {raw!r}", source)


def load_settings(
    source: Union[str, Path, None] = None,
    rest_format: Optional[str] = None,
) -> ClientSettings:
    """Load credentials and transport settings from one INI file.
    
    Raises:
        ConfigError: On missing credentials or an invalid ``timeout``/``verify_ssl``
    """
    source = str(source or default_credentials_location())
    section = _read_section(source)
    credentials = _credentials_from_section(section, source, rest_format)
    
    raw_timeout = section.get("timeout", "")
    try:
        timeout_seconds = int(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
    except ValueError as exc:
        raise ConfigError(f"The 'timeout' variable must be an integer, got {raw_timeout!r}", source) from exc
    if timeout_seconds <= 0:
        raise ConfigError("The 'timeout' variable must be greater than 0", source)
    
    raw_verify = section.get("verify_ssl")
    verify_ssl = True if raw_verify is None else _parse_bool(raw_verify, "verify_ssl", source)
    if not verify_ssl:
        logger.warning("TLS certificate verification disabled for %s", credentials.url)
    
    logger.debug("Loaded Moodle credentials for %s (format=%s)", credentials.url, credentials.rest_format)
    return ClientSettings(
        credentials=credentials,
        timeout_seconds=timeout_seconds,
        verify_ssl=verify_ssl,
    )
