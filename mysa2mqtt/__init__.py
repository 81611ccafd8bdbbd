"""Provide a package for mysa2mqtt."""

__version__ = "0.1.0"

from .api import MysaApiClient
from .exceptions import MysaApiError, MysaAuthenticationError, MysaError
from .thermostat import EntityState, Thermostat
