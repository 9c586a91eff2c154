"""
Stopping and starting a service, and waiting for it to settle in the requested state.
"""

from enum import Enum
import logging
import time
from typing import Callable, Optional, Union

from .common import Result, State
from .errors import (ControlFailure, ERROR_SERVICE_ALREADY_RUNNING, ERROR_SERVICE_NOT_ACTIVE,
                     OSFailure, QueryFailure, WaitTimeout)
from .scm import Access, open_scope, ServiceHandle, ServiceIdentity, ServiceManager, ServiceState


LOG = logging.getLogger(__name__)

POLL_INTERVAL = 0.25
"""
Default seconds between two status queries.
"""

TIMEOUT = 30.0
"""
Default seconds to wait for a service to reach its target state.
"""


class WaitOutcome(Enum):
    """
    How a call to `LifecycleController.wait_for_status` ended.
    """

    reached = 0
    timed_out = 1
    query_failed = 2


class Wait:
    """
    Outcome of a single wait, along with the last state seen and how long it took.
    """

    def __init__(self, outcome: WaitOutcome, target: ServiceState,
                 state: Union[ServiceState, int, None] = None, elapsed: float = 0.0, polls: int = 0,
                 error: Optional[QueryFailure] = None, timeout: float = 0.0):
        self.outcome = outcome
        self.target = target
        self.state = state
        self.elapsed = elapsed
        self.polls = polls
        self.error = error
        self.timeout = timeout

    def __bool__(self):
        return self.outcome is WaitOutcome.reached

    def check(self) -> ServiceState:
        """
        Return the reached state, or raise the failure that ended the wait.
        """
        if self.outcome is WaitOutcome.query_failed:
            raise self.error
        elif self.outcome is WaitOutcome.timed_out:
            raise WaitTimeout(self.target, self.state, self.timeout)
        return self.target

    def __repr__(self):
        return "<{}: {} {} after {:.3f}s, {} polls>".format(self.__class__.__name__,
                                                            self.outcome.name, self.target.name,
                                                            self.elapsed, self.polls)


class LifecycleController:
    """
    Stop and start a service through a `ServiceManager`, polling until each change takes effect.

    The polling interval and timeout (both in seconds) are fixed at construction, as are the clock
    and sleep functions, so that callers can substitute their own.
    """

    def __init__(self, manager: ServiceManager, poll_interval: float = POLL_INTERVAL,
                 timeout: float = TIMEOUT, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if poll_interval <= 0:
            raise ValueError("Poll interval must be positive")
        if timeout < 0:
            raise ValueError("Timeout must not be negative")
        self.manager = manager
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep

    def wait_for_status(self, handle: ServiceHandle, target: ServiceState,
                        timeout: Optional[float] = None) -> Wait:
        """
        Poll the service until its state matches `target`, or the timeout elapses.

        A failed status query ends the wait immediately.
        """
        if timeout is None:
            timeout = self.timeout
        start = self._clock()
        polls = 0
        state = None
        while True:
            polls += 1
            try:
                state = handle.query_status()
            except OSFailure as ex:
                error = QueryFailure.from_os(ex)
                LOG.debug("Status query failed: %s", error)
                return Wait(WaitOutcome.query_failed, target, state, self._clock() - start, polls,
                            error, timeout)
            elapsed = self._clock() - start
            if state is target:
                LOG.debug("Service %s reached %s after %d polls", handle.identity, target.name,
                          polls)
                return Wait(WaitOutcome.reached, target, state, elapsed, polls, timeout=timeout)
            if elapsed >= timeout:
                LOG.debug("Timed out waiting for %s after %d polls", target.name, polls)
                return Wait(WaitOutcome.timed_out, target, state, elapsed, polls, timeout=timeout)
            LOG.debug("Service %s is %s, waiting for %s", handle.identity,
                      getattr(state, "name", state), target.name)
            self._sleep(min(self.poll_interval, timeout - elapsed))

    def stop_service(self, identity: ServiceIdentity) -> Result[ServiceState]:
        """
        Stop the service and wait for it to terminate.

        A service that is not running counts as stopped, and reports `State.unchanged`.
        """
        with open_scope(self.manager, identity, Access.stop | Access.query_status) as handle:
            state = State.success
            try:
                handle.stop()
            except OSFailure as ex:
                if ex.code != ERROR_SERVICE_NOT_ACTIVE:
                    raise ControlFailure.from_os(ex) from ex
                LOG.info("Service is not active.")
                state = State.unchanged
            else:
                LOG.info("Stop request sent. Waiting for service to terminate...")
            wait = self.wait_for_status(handle, ServiceState.stopped)
            return Result(state, wait.check(), caller=self.stop_service)

    def start_service(self, identity: ServiceIdentity) -> Result[ServiceState]:
        """
        Start the service and wait for it to run.

        A service that is already running reports `State.unchanged` without any polling.
        """
        with open_scope(self.manager, identity, Access.start | Access.query_status) as handle:
            try:
                handle.start()
            except OSFailure as ex:
                if ex.code != ERROR_SERVICE_ALREADY_RUNNING:
                    raise ControlFailure.from_os(ex) from ex
                LOG.info("Service is already running.")
                return Result(State.unchanged, ServiceState.running, caller=self.start_service)
            LOG.info("Start request sent. Waiting for service to run...")
            wait = self.wait_for_status(handle, ServiceState.running)
            return Result(State.success, wait.check(), caller=self.start_service)
