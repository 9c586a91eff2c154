"""
Scripts to restart the Windows Time service and resynchronise the clock.
"""

from functools import partial

from ..config import Config
from ..plumbing import w32tm
from ..plumbing.common import require_platform
from ..plumbing.errors import ResyncInvocationFailure
from ..plumbing.lifecycle import LifecycleController
from ..plumbing.scm import ServiceIdentity, ServiceManager
from ..tasks.timesync import ResyncSequence
from .utils import DocOptArgs, entrypoint, error, EXIT_UNUSABLE


@require_platform("win32")
def get_manager() -> ServiceManager:
    """
    Return a service manager for the local machine.
    """
    # pywin32 only installs on Windows, so defer the import until we know we're there.
    from ..plumbing.win32 import Win32ServiceManager
    return Win32ServiceManager()


@entrypoint(name="w32resync")
def resync(opts: DocOptArgs, config: Config) -> int:
    """
    Restart the Windows Time service, then force an immediate clock resync.

    Usage: {script} [options]

    Options:
      --config=PATH      Read settings from this INI file.
      --service=NAME     Name of the time service to restart.
      --timeout=SECS     Seconds to wait for the service to stop or start.
      --interval=SECS    Seconds between service status checks.
      --force            Pass /force to the resync command.
      --status           Print the time service's status after a successful resync.

    Exit codes: 0 on success, 1 if stopping failed, 2 if starting failed, 3 if the resync command
    failed, 4 if it could not be run, and 5 if the script can't run here.
    """
    try:
        manager = get_manager()
    except (ImportError, RuntimeError) as ex:
        error(str(ex), exit=EXIT_UNUSABLE)
    controller = LifecycleController(manager, config.poll_interval, config.timeout)
    sequence = ResyncSequence(controller, ServiceIdentity(config.service_name),
                              partial(w32tm.resync, config.resync_nowait, config.resync_force))
    outcome = sequence.run()
    if outcome.error:
        error("Error: {}".format(outcome.error))
    if outcome and opts.get("--status"):
        try:
            print(w32tm.get_status())
        except ResyncInvocationFailure as ex:
            error("Error: {}".format(ex))
    print("\nDone.")
    return outcome.exit_code
