"""
Failures raised while controlling the time service or triggering a resync.

Backends raise `OSFailure` with the failing API function and the OS error code; the plumbing
translates those into the `ServiceError` subclass describing which step went wrong.
"""

from typing import Optional


ERROR_SERVICE_ALREADY_RUNNING = 1056
ERROR_SERVICE_NOT_ACTIVE = 1062


class OSFailure(Exception):
    """
    Low-level failure of a service control API call.
    """

    def __init__(self, function: str, code: int, message: str = ""):
        super().__init__(function, code, message)
        self.function = function
        self.code = code
        self.message = message

    def __str__(self):
        return "{} failed: [{}] {}".format(self.function, self.code,
                                           self.message or "Unable to format message.")


class ServiceError(Exception):
    """
    Base class of all failures that halt the restart sequence.
    """

    def __init__(self, operation: str, code: Optional[int] = None, message: str = ""):
        super().__init__(operation, code, message)
        self.operation = operation
        self.code = code
        self.message = message

    @classmethod
    def from_os(cls, failure: OSFailure) -> "ServiceError":
        return cls(failure.function, failure.code, failure.message)

    def __str__(self):
        if self.code is None:
            return "{} failed: {}".format(self.operation, self.message)
        return "{} failed.\nCode: {} - {}".format(self.operation, self.code,
                                                   self.message or "Unable to format message.")


class ConnectionFailure(ServiceError):
    """
    The service control manager could not be reached.
    """


class ServiceUnavailable(ServiceError):
    """
    The named service does not exist, or access to it was denied.
    """


class ControlFailure(ServiceError):
    """
    A stop or start request was rejected for a reason other than the service already being in the
    requested state.
    """


class QueryFailure(ServiceError):
    """
    Querying the service's status failed.
    """


class WaitTimeout(ServiceError):
    """
    The service did not reach its target state in time.
    """

    def __init__(self, target, last_state=None, timeout: float = 0.0):
        super().__init__("WaitForServiceStatus",
                         message="Timeout waiting for service to reach state {}"
                                 .format(getattr(target, "name", target)))
        self.target = target
        self.last_state = last_state
        self.timeout = timeout


class ResyncInvocationFailure(ServiceError):
    """
    The resync command could not be run (`returncode` is `None`), or exited with a nonzero status.
    """

    def __init__(self, operation: str, returncode: Optional[int] = None, message: str = ""):
        super().__init__(operation, None, message)
        self.returncode = returncode
