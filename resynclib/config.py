"""
Settings for restarting the time service.

Values are read in order from the built-in defaults, an INI file (section `[w32resync]`), and the
`W32RESYNC_*` environment variables, with later sources taking precedence.  Scripts may override
any of these again from their own options.
"""

import configparser
import logging
import os
import os.path
from typing import Mapping, Optional

from .plumbing.lifecycle import POLL_INTERVAL, TIMEOUT


LOG = logging.getLogger(__name__)

SERVICE_NAME = "w32time"
"""
Name of the Windows Time service.
"""

SECTION = "w32resync"

ENV_VARS = {"service_name": "W32RESYNC_SERVICE",
            "timeout": "W32RESYNC_TIMEOUT",
            "poll_interval": "W32RESYNC_INTERVAL"}


def default_path() -> str:
    base = os.getenv("PROGRAMDATA") or os.path.expanduser("~")
    return os.path.join(base, "w32resync", "w32resync.ini")


def _positive(key: str, value: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError("{} must be a number, got {!r}".format(key, value)) from None
    if number <= 0:
        raise ValueError("{} must be positive, got {!r}".format(key, value))
    return number


def _flag(key: str, value: str) -> bool:
    lowered = str(value).strip().lower()
    if lowered in configparser.ConfigParser.BOOLEAN_STATES:
        return configparser.ConfigParser.BOOLEAN_STATES[lowered]
    raise ValueError("{} must be a boolean, got {!r}".format(key, value))


class Config:
    """
    Service name, polling behaviour and resync options.
    """

    def __init__(self, service_name: str = SERVICE_NAME, poll_interval: float = POLL_INTERVAL,
                 timeout: float = TIMEOUT, resync_nowait: bool = True, resync_force: bool = False):
        self.service_name = service_name
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.resync_nowait = resync_nowait
        self.resync_force = resync_force

    def update(self, values: Mapping[str, Optional[str]]) -> "Config":
        """
        Apply string values by setting name, validating each one, and skipping any set to `None`.
        """
        for key, value in values.items():
            if value is None:
                continue
            if key == "service_name":
                value = value.strip()
                if not value:
                    raise ValueError("service_name must not be empty")
                self.service_name = value
            elif key in ("poll_interval", "timeout"):
                setattr(self, key, _positive(key, value))
            elif key in ("resync_nowait", "resync_force"):
                setattr(self, key, _flag(key, value))
            else:
                raise KeyError("Unknown setting {!r}".format(key))
        return self

    def read_file(self, path: str) -> "Config":
        """
        Apply settings from an INI file, if it exists.
        """
        parser = configparser.ConfigParser()
        if not parser.read(path):
            LOG.debug("No config file at %r", path)
            return self
        LOG.debug("Reading config from %r", path)
        if parser.has_section(SECTION):
            self.update(dict(parser.items(SECTION)))
        return self

    def read_env(self, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Apply settings from `W32RESYNC_*` environment variables.
        """
        if environ is None:
            environ = os.environ
        return self.update({key: environ.get(var) for key, var in ENV_VARS.items()})

    @classmethod
    def load(cls, path: Optional[str] = None,
             environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Build a config from the defaults, a config file and the environment.
        """
        return cls().read_file(path or default_path()).read_env(environ)

    def __repr__(self):
        return ("{}(service_name={!r}, poll_interval={!r}, timeout={!r}, resync_nowait={!r}, "
                "resync_force={!r})".format(self.__class__.__name__, self.service_name,
                                            self.poll_interval, self.timeout, self.resync_nowait,
                                            self.resync_force))
