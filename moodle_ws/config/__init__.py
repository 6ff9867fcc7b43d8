"""Configuration module for the Moodle web service client."""
from .settings import ClientSettings, Credentials, load_credentials, load_settings

__all__ = ["ClientSettings", "Credentials", "load_credentials", "load_settings"]
