"""
Restarting the time service and forcing a clock resync.
"""

from enum import Enum
import logging
from typing import Callable, List, Optional

from ..plumbing import w32tm
from ..plumbing.common import Result
from ..plumbing.errors import ResyncInvocationFailure, ServiceError
from ..plumbing.lifecycle import LifecycleController
from ..plumbing.scm import ServiceIdentity


LOG = logging.getLogger(__name__)


class Phase(Enum):
    """
    Step of a `ResyncSequence`.  Phases only ever move forward.
    """

    idle = 0
    stopping = 1
    starting = 2
    resyncing = 3
    done = 4
    failed = 5


_NEXT = {Phase.idle: {Phase.stopping},
         Phase.stopping: {Phase.starting, Phase.failed},
         Phase.starting: {Phase.resyncing, Phase.failed},
         Phase.resyncing: {Phase.done, Phase.failed},
         Phase.done: set(),
         Phase.failed: set()}


class OperationResult(Enum):
    """
    Overall outcome of a sequence, valued by the exit code to report it with.
    """

    success = 0
    stop_failed = 1
    start_failed = 2
    resync_failed = 3
    resync_not_invoked = 4

    @property
    def exit_code(self) -> int:
        return self.value


class SequenceOutcome:
    """
    Summary of a completed `ResyncSequence`: the result, the phase it ended in or failed during,
    and the error if any.
    """

    def __init__(self, result: OperationResult, phase: Phase, error: Optional[ServiceError] = None,
                 parts: List[Result] = (), service_restarted: bool = False):
        self.result = result
        self.phase = phase
        self.error = error
        self.parts = tuple(parts)
        self.service_restarted = service_restarted

    @property
    def exit_code(self) -> int:
        return self.result.exit_code

    def __bool__(self):
        return self.result is OperationResult.success

    def __repr__(self):
        return "<{}: {} in {}>".format(self.__class__.__name__, self.result.name, self.phase.name)


class ResyncSequence:
    """
    Stop the time service, start it again, then trigger a resync.

    Each step runs only if the previous one succeeded; the first failure ends the sequence, and is
    reported against the phase it happened in.
    """

    def __init__(self, controller: LifecycleController, identity: ServiceIdentity,
                 resync: Callable[[], Result[None]] = w32tm.resync):
        self.controller = controller
        self.identity = identity
        self.resync = resync
        self.phase = Phase.idle
        self.failed_phase: Optional[Phase] = None
        self.parts: List[Result] = []

    def _enter(self, phase: Phase) -> None:
        if phase not in _NEXT[self.phase]:
            raise RuntimeError("Can't move from {} to {}".format(self.phase.name, phase.name))
        LOG.debug("Phase %s -> %s", self.phase.name, phase.name)
        self.phase = phase

    def _fail(self, error: ServiceError) -> SequenceOutcome:
        self.failed_phase = self.phase
        if self.phase is Phase.stopping:
            result = OperationResult.stop_failed
        elif self.phase is Phase.starting:
            result = OperationResult.start_failed
        elif isinstance(error, ResyncInvocationFailure) and error.returncode is None:
            result = OperationResult.resync_not_invoked
        else:
            result = OperationResult.resync_failed
        self._enter(Phase.failed)
        return SequenceOutcome(result, self.failed_phase, error, self.parts,
                               self.failed_phase is Phase.resyncing)

    def run(self) -> SequenceOutcome:
        name = self.identity.name
        self._enter(Phase.stopping)
        LOG.info("--- Attempting to stop the '%s' service... ---", name)
        try:
            self.parts.append(self.controller.stop_service(self.identity))
        except ServiceError as ex:
            LOG.info("Failed to stop the service. Aborting.")
            return self._fail(ex)
        LOG.info("Service successfully stopped.\n")
        self._enter(Phase.starting)
        LOG.info("--- Attempting to start the '%s' service... ---", name)
        try:
            self.parts.append(self.controller.start_service(self.identity))
        except ServiceError as ex:
            LOG.info("Failed to start the service.")
            return self._fail(ex)
        LOG.info("Service successfully started.\n")
        self._enter(Phase.resyncing)
        LOG.info("--- Resyncing system time... ---")
        try:
            self.parts.append(self.resync())
        except ResyncInvocationFailure as ex:
            LOG.info("Failed to execute time resync command.")
            return self._fail(ex)
        LOG.info("Time resync command sent successfully.")
        self._enter(Phase.done)
        return SequenceOutcome(OperationResult.success, Phase.done, None, self.parts, True)
