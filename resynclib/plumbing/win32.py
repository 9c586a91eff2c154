"""
Service control backend for Windows, using the Win32 API bindings from pywin32.
"""

import logging
from typing import Any

import pywintypes
import win32service

from .errors import OSFailure
from .scm import Access, ServiceManager


LOG = logging.getLogger(__name__)


def _failure(ex: "pywintypes.error", function: str) -> OSFailure:
    return OSFailure(ex.funcname or function, ex.winerror, ex.strerror)


class Win32ServiceManager(ServiceManager):
    """
    Service manager talking to the local machine's service control manager.
    """

    def __init__(self, machine: str = None):
        self.machine = machine

    def connect(self) -> Any:
        try:
            return win32service.OpenSCManager(self.machine, None, win32service.SC_MANAGER_CONNECT)
        except pywintypes.error as ex:
            raise _failure(ex, "OpenSCManager") from ex

    def open_service(self, conn: Any, name: str, access: Access) -> Any:
        try:
            return win32service.OpenService(conn, name, int(access))
        except pywintypes.error as ex:
            raise _failure(ex, "OpenService") from ex

    def close(self, handle: Any) -> None:
        try:
            win32service.CloseServiceHandle(handle)
        except pywintypes.error as ex:
            LOG.warning("Failed to release service handle: %s", _failure(ex, "CloseServiceHandle"))

    def query_status(self, handle: Any) -> int:
        try:
            return win32service.QueryServiceStatusEx(handle)["CurrentState"]
        except pywintypes.error as ex:
            raise _failure(ex, "QueryServiceStatusEx") from ex

    def stop(self, handle: Any) -> None:
        try:
            win32service.ControlService(handle, win32service.SERVICE_CONTROL_STOP)
        except pywintypes.error as ex:
            raise _failure(ex, "ControlService") from ex

    def start(self, handle: Any) -> None:
        try:
            win32service.StartService(handle, None)
        except pywintypes.error as ex:
            raise _failure(ex, "StartService") from ex
