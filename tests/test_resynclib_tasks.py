import unittest
from unittest.mock import Mock, patch

from resynclib.plumbing.common import Result, State
from resynclib.plumbing.errors import (ConnectionFailure, ControlFailure, OSFailure,
                                       ResyncInvocationFailure, WaitTimeout)
from resynclib.plumbing.lifecycle import LifecycleController
from resynclib.plumbing.scm import ServiceIdentity, ServiceState
from resynclib.tasks import timesync
from resynclib.tasks.timesync import OperationResult, Phase, ResyncSequence

from .plumbing import FakeClock, FakeServiceManager


IDENTITY = ServiceIdentity("w32time")


class TestSequence(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.resync = Mock(return_value=Result(State.success))

    def run_sequence(self, manager, timeout=30.0):
        controller = LifecycleController(manager, 0.25, timeout, self.clock, self.clock.sleep)
        self.sequence = ResyncSequence(controller, IDENTITY, self.resync)
        return self.sequence.run()

    def test_running(self):
        manager = FakeServiceManager()
        outcome = self.run_sequence(manager)
        self.assertTrue(outcome)
        self.assertIs(outcome.result, OperationResult.success)
        self.assertIs(outcome.phase, Phase.done)
        self.assertEqual(outcome.exit_code, 0)
        self.assertTrue(outcome.service_restarted)
        self.assertIsNone(outcome.error)
        self.assertEqual(len(outcome.parts), 3)
        self.resync.assert_called_once_with()
        self.assertIs(manager.state, ServiceState.running)
        self.assertEqual([call[0] for call in manager.calls if call[0] in ("stop", "start")],
                         ["stop", "start"])
        self.assertEqual(manager.open_handles, [])

    def test_connection_failure(self):
        manager = FakeServiceManager(failures={"connect": OSFailure("OpenSCManager", 5,
                                                                   "Access is denied.")})
        outcome = self.run_sequence(manager)
        self.assertFalse(outcome)
        self.assertIs(outcome.result, OperationResult.stop_failed)
        self.assertIs(outcome.phase, Phase.stopping)
        self.assertIsInstance(outcome.error, ConnectionFailure)
        self.assertEqual(outcome.exit_code, 1)
        self.assertEqual(manager.connects, 0)
        self.resync.assert_not_called()
        self.assertIs(self.sequence.phase, Phase.failed)

    def test_stop_timeout(self):
        manager = FakeServiceManager(stuck=True)
        outcome = self.run_sequence(manager)
        self.assertIs(outcome.result, OperationResult.stop_failed)
        self.assertIsInstance(outcome.error, WaitTimeout)
        self.assertLessEqual(self.clock.now, 30.0 + 0.25)
        self.assertNotIn("start", [call[0] for call in manager.calls])
        self.resync.assert_not_called()
        self.assertFalse(outcome.service_restarted)

    def test_already_stopped(self):
        manager = FakeServiceManager(state=ServiceState.stopped)
        outcome = self.run_sequence(manager)
        self.assertIs(outcome.result, OperationResult.success)
        self.assertEqual(outcome.parts[0].state, State.unchanged)
        self.assertEqual(outcome.parts[1].state, State.success)
        self.resync.assert_called_once_with()

    def test_start_failure(self):
        manager = FakeServiceManager(failures={"start": OSFailure("StartService", 1058,
                                                                 "The service cannot be started.")})
        outcome = self.run_sequence(manager)
        self.assertIs(outcome.result, OperationResult.start_failed)
        self.assertIs(outcome.phase, Phase.starting)
        self.assertIsInstance(outcome.error, ControlFailure)
        self.assertEqual(outcome.exit_code, 2)
        self.resync.assert_not_called()

    def test_resync_failed(self):
        self.resync.side_effect = ResyncInvocationFailure("w32tm /resync", 1, "exited with status 1")
        outcome = self.run_sequence(FakeServiceManager())
        self.assertIs(outcome.result, OperationResult.resync_failed)
        self.assertIs(outcome.phase, Phase.resyncing)
        self.assertEqual(outcome.exit_code, 3)
        self.assertTrue(outcome.service_restarted)
        self.assertEqual(len(outcome.parts), 2)

    def test_resync_not_invoked(self):
        self.resync.side_effect = ResyncInvocationFailure("w32tm /resync", None, "not found")
        outcome = self.run_sequence(FakeServiceManager())
        self.assertIs(outcome.result, OperationResult.resync_not_invoked)
        self.assertEqual(outcome.exit_code, 4)
        self.assertTrue(outcome.service_restarted)

    @patch("{}.LOG".format(timesync.__spec__.name))
    def test_failure_left_to_caller(self, log: Mock):
        manager = FakeServiceManager(failures={"stop": OSFailure("ControlService", 5,
                                                                "Access is denied.")})
        outcome = self.run_sequence(manager)
        log.info.assert_any_call("Failed to stop the service. Aborting.")
        log.error.assert_not_called()
        self.assertEqual(outcome.error.code, 5)

    def test_run_once(self):
        self.run_sequence(FakeServiceManager())
        with self.assertRaises(RuntimeError):
            self.sequence.run()


if __name__ == "__main__":
    unittest.main()
