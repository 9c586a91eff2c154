"""
Scoped connections to the service control manager and to a single named service.

A connection is only ever held inside `open_scope`, which releases both the service handle and the
manager handle on exit, including when the caller leaves through an exception.
"""

from contextlib import contextmanager
from enum import Enum, IntFlag
import logging
from typing import Any, Iterator, Union

from .errors import ConnectionFailure, OSFailure, ServiceUnavailable


LOG = logging.getLogger(__name__)


class ServiceState(Enum):
    """
    Current state of a service, as reported by the service control manager.
    """

    stopped = 1
    start_pending = 2
    stop_pending = 3
    running = 4
    continue_pending = 5
    pause_pending = 6
    paused = 7

    @classmethod
    def from_raw(cls, code: int) -> Union["ServiceState", int]:
        """
        Convert a raw status code, keeping unrecognised codes as plain integers.
        """
        try:
            return cls(code)
        except ValueError:
            return code


class Access(IntFlag):
    """
    Service-level access rights, requested when opening a service.
    """

    query_status = 0x0004
    start = 0x0010
    stop = 0x0020


class ServiceIdentity:
    """
    Name of the service under control.
    """

    __slots__ = ("_name",)

    def __init__(self, name: str):
        if not name:
            raise ValueError("Service name must not be empty")
        object.__setattr__(self, "_name", name)

    @property
    def name(self) -> str:
        return self._name

    def __setattr__(self, key, value):
        raise AttributeError("{} is immutable".format(self.__class__.__name__))

    def __eq__(self, other):
        if not isinstance(other, ServiceIdentity):
            return NotImplemented
        return self._name.lower() == other._name.lower()

    def __hash__(self):
        return hash(self._name.lower())

    def __str__(self):
        return self._name

    def __repr__(self):
        return "{}({!r})".format(self.__class__.__name__, self._name)


class ServiceManager:
    """
    Interface to an operating system's service control subsystem.

    Implementations deal in opaque handles, and raise `OSFailure` for any failed call.
    """

    def connect(self) -> Any:
        """
        Open a connection to the service control manager.
        """
        raise NotImplementedError

    def open_service(self, conn: Any, name: str, access: Access) -> Any:
        """
        Open a named service with the given access rights.
        """
        raise NotImplementedError

    def close(self, handle: Any) -> None:
        """
        Release a manager or service handle.
        """
        raise NotImplementedError

    def query_status(self, handle: Any) -> int:
        """
        Fetch the raw current state code of an open service.
        """
        raise NotImplementedError

    def stop(self, handle: Any) -> None:
        """
        Send a stop control to an open service.
        """
        raise NotImplementedError

    def start(self, handle: Any) -> None:
        """
        Request an open service to start.
        """
        raise NotImplementedError


class ServiceHandle:
    """
    Typed wrapper around an open service handle, valid only inside its `open_scope` block.
    """

    def __init__(self, manager: ServiceManager, raw: Any, identity: ServiceIdentity,
                 access: Access):
        self._manager = manager
        self._raw = raw
        self.identity = identity
        self.access = access
        self.closed = False

    def _get(self) -> Any:
        if self.closed:
            raise RuntimeError("Handle for service {!r} has been released"
                               .format(self.identity.name))
        return self._raw

    def query_status(self) -> Union[ServiceState, int]:
        return ServiceState.from_raw(self._manager.query_status(self._get()))

    def stop(self) -> None:
        self._manager.stop(self._get())

    def start(self) -> None:
        self._manager.start(self._get())

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._manager.close(self._raw)

    def __repr__(self):
        return "<{}: {} {!r}{}>".format(self.__class__.__name__, self.identity.name,
                                        self.access, " closed" if self.closed else "")


@contextmanager
def open_scope(manager: ServiceManager, identity: ServiceIdentity,
               access: Access) -> Iterator[ServiceHandle]:
    """
    Connect to the service control manager and open a service, yielding a handle to it:

        with open_scope(manager, identity, Access.stop | Access.query_status) as handle:
            handle.stop()

    Raises `ConnectionFailure` if the manager can't be reached, or `ServiceUnavailable` if the
    service can't be opened.  The manager connection is released in both cases.
    """
    try:
        conn = manager.connect()
    except OSFailure as ex:
        raise ConnectionFailure.from_os(ex) from ex
    LOG.debug("Connected to service control manager")
    try:
        try:
            raw = manager.open_service(conn, identity.name, access)
        except OSFailure as ex:
            raise ServiceUnavailable.from_os(ex) from ex
        handle = ServiceHandle(manager, raw, identity, access)
        LOG.debug("Opened %r", handle)
        try:
            yield handle
        finally:
            handle.close()
            LOG.debug("Released %r", handle)
    finally:
        manager.close(conn)
        LOG.debug("Disconnected from service control manager")
