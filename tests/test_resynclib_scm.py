import unittest

from resynclib.plumbing.errors import ConnectionFailure, OSFailure, ServiceUnavailable
from resynclib.plumbing.scm import Access, open_scope, ServiceIdentity, ServiceState

from .plumbing import FakeServiceManager


class TestServiceState(unittest.TestCase):

    def test_known(self):
        self.assertIs(ServiceState.from_raw(4), ServiceState.running)

    def test_unknown(self):
        self.assertEqual(ServiceState.from_raw(99), 99)


class TestServiceIdentity(unittest.TestCase):

    def test_name(self):
        self.assertEqual(ServiceIdentity("w32time").name, "w32time")

    def test_empty(self):
        with self.assertRaises(ValueError):
            ServiceIdentity("")

    def test_immutable(self):
        identity = ServiceIdentity("w32time")
        with self.assertRaises(AttributeError):
            identity.name = "other"
        with self.assertRaises(AttributeError):
            identity._name = "other"

    def test_equal_ignores_case(self):
        self.assertEqual(ServiceIdentity("W32Time"), ServiceIdentity("w32time"))
        self.assertEqual(len({ServiceIdentity("W32Time"), ServiceIdentity("w32time")}), 1)


class TestOpenScope(unittest.TestCase):

    def setUp(self):
        self.identity = ServiceIdentity("w32time")

    def test_access(self):
        manager = FakeServiceManager()
        with open_scope(manager, self.identity, Access.stop | Access.query_status) as handle:
            self.assertEqual(handle.access, Access.stop | Access.query_status)
        self.assertEqual(manager.calls[1], ("open_service", "scm-1", "w32time", 0x0024))

    def test_release_order(self):
        manager = FakeServiceManager()
        with open_scope(manager, self.identity, Access.query_status) as handle:
            self.assertEqual(manager.open_handles, ["scm-1", "svc-2"])
            self.assertIs(handle.query_status(), ServiceState.running)
        self.assertEqual(manager.calls[-2:], [("close", "svc-2"), ("close", "scm-1")])
        self.assertEqual(manager.open_handles, [])
        self.assertTrue(handle.closed)

    def test_release_on_error(self):
        manager = FakeServiceManager()
        with self.assertRaises(KeyError):
            with open_scope(manager, self.identity, Access.query_status):
                raise KeyError("boom")
        self.assertEqual(manager.open_handles, [])

    def test_use_after_release(self):
        manager = FakeServiceManager()
        with open_scope(manager, self.identity, Access.query_status) as handle:
            pass
        with self.assertRaises(RuntimeError):
            handle.query_status()

    def test_repr(self):
        manager = FakeServiceManager()
        with open_scope(manager, self.identity, Access.query_status) as handle:
            self.assertTrue(repr(handle).startswith("<ServiceHandle: w32time "))
            self.assertNotIn("closed", repr(handle))
        self.assertTrue(repr(handle).endswith(" closed>"))

    def test_connect_failure(self):
        manager = FakeServiceManager(failures={"connect": OSFailure("OpenSCManager", 5,
                                                                   "Access is denied.")})
        with self.assertRaises(ConnectionFailure) as ctx:
            with open_scope(manager, self.identity, Access.query_status):
                self.fail("Scope entered without a connection")
        self.assertEqual(ctx.exception.operation, "OpenSCManager")
        self.assertEqual(ctx.exception.code, 5)
        self.assertEqual(manager.open_handles, [])

    def test_missing_service(self):
        manager = FakeServiceManager()
        with self.assertRaises(ServiceUnavailable) as ctx:
            with open_scope(manager, ServiceIdentity("missing"), Access.query_status):
                self.fail("Scope entered without a service")
        self.assertEqual(ctx.exception.code, 1060)
        self.assertIn("1060", str(ctx.exception))
        self.assertEqual(manager.calls[-1], ("close", "scm-1"))
        self.assertEqual(manager.open_handles, [])


if __name__ == "__main__":
    unittest.main()
