"""
Wrappers around `w32tm`, the Windows Time service's command-line tool.
"""

import logging
import subprocess

from .common import command, Result, State
from .errors import ResyncInvocationFailure


LOG = logging.getLogger(__name__)

W32TM = "w32tm"


def get_status() -> str:
    """
    Return the time service's own status report (source, stratum, last sync time).
    """
    try:
        proc = command([W32TM, "/query", "/status"], output=True)
    except subprocess.CalledProcessError as ex:
        raise ResyncInvocationFailure("w32tm /query", ex.returncode,
                                      "exited with status {}".format(ex.returncode)) from ex
    except OSError as ex:
        raise ResyncInvocationFailure("w32tm /query", None, str(ex)) from ex
    return proc.stdout.decode("utf-8", errors="replace")


def resync(nowait: bool = True, force: bool = False) -> Result[None]:
    """
    Ask the time service to resynchronise the clock immediately.

    With `nowait`, `w32tm` returns as soon as the request is queued rather than once the sync has
    completed.
    """
    args = [W32TM, "/resync"]
    if nowait:
        args.append("/nowait")
    if force:
        args.append("/force")
    try:
        command(args)
    except subprocess.CalledProcessError as ex:
        raise ResyncInvocationFailure("w32tm /resync", ex.returncode,
                                      "exited with status {}".format(ex.returncode)) from ex
    except OSError as ex:
        raise ResyncInvocationFailure("w32tm /resync", None, str(ex)) from ex
    return Result(State.success)
