"""
Shared helper methods and base classes.
"""

from enum import Enum
from functools import wraps
import inspect
import logging
import subprocess
import sys
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union


LOG = logging.getLogger(__name__)

T = TypeVar("T")


class Unset:
    """
    Constructor of generic default values for optional but nullable parameters.
    """

    def __repr__(self):
        return "UNSET"


UNSET = Unset()
"""
Global generic default value.
"""


class State(Enum):
    """
    Enumeration used by `Result` to declare whether the action happened.
    """

    unchanged = 0
    """
    No action required, the request and current state are consistent.
    """
    success = 1
    """
    The action was completed without issues.
    """

    def __bool__(self):
        return bool(self.value)


class Result(Generic[T]):
    """
    State and optional accompanying value from a unit of work.

    For a simple plumbing action, just create a new result directly with the resulting `State` and
    a value if relevant:

        def unit():
            # Send a service control, call an external command etc.
            return Result(State.success, True)

    A result can be checked for truthiness, which is `False` if no changes were made.

    A result can also be converted to a string, which names the action and its outcome:

        module:Class.method: success <ServiceState.running: 4>
    """

    def __init__(self, state: State = State.unchanged, value: Union[T, Unset] = UNSET,
                 caller: Optional[Callable[..., Any]] = None):
        self.state = state
        self._value = value
        self.caller = "<unknown>"
        # Inspection magic to log the calling method, e.g. `module.sub:Class.method`.
        name = None
        if not caller:
            frame = inspect.currentframe()
            try:
                name = frame.f_back.f_code.co_name
                caller = frame.f_back.f_globals[name]
            except (AttributeError, KeyError):
                pass
        if caller:
            self.caller = "{}:{}".format(caller.__module__, caller.__qualname__)
        elif name:
            self.caller = name

    @property
    def value(self) -> T:
        """
        Return value produced by the unit of work.

        Accessing this attribute will raise `ValueError` if no value has been set.
        """
        if isinstance(self._value, Unset):
            raise ValueError("No value set")
        return self._value

    def __bool__(self) -> bool:
        return bool(self.state)

    def __repr__(self) -> str:
        params = [str(self.state)]
        if not isinstance(self._value, Unset):
            params.append(repr(self._value))
        return "{}({})".format(self.__class__.__name__, ", ".join(params))

    def __str__(self) -> str:
        text = "{}: {}".format(self.caller, self.state.name)
        if not isinstance(self._value, Unset):
            text = "{} {!r}".format(text, self._value)
        return text


def require_platform(*platforms: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Only allow a function to be called on the given platforms, identified by `sys.platform`:

        @require_platform("win32")
        def restart_time_service(): ...
    """
    def outer(fn: Callable[..., T]) -> Callable[..., T]:
        @wraps(fn)
        def inner(*args: Any, **kwargs: Any):
            if sys.platform not in platforms:
                raise RuntimeError("{}() can't be used on platform {}, requires {}"
                                   .format(fn.__name__, sys.platform, "/".join(platforms)))
            return fn(*args, **kwargs)
        return inner
    return outer


def command(args: List[str], output: bool = False) -> "subprocess.CompletedProcess[bytes]":
    """
    Create a subprocess to execute an external command.
    """
    LOG.debug("Exec: %r", args)
    return subprocess.run(args, stdout=subprocess.PIPE if output else None, check=True)
