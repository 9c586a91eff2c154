"""
Helpers for converting methods into scripts, and filling in arguments with configuration.
"""

from functools import wraps
from inspect import cleandoc, signature
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Union

from docopt import docopt

from ..config import Config


DocOptArgs = Dict[str, Union[bool, str, List[str], None]]

ENTRYPOINTS: List[str] = []

EXIT_UNUSABLE = 5
"""
Exit code for scripts that can't run at all, e.g. on the wrong platform or with invalid settings.
"""

# Script options that override a `Config` setting of the same meaning.
CONFIG_OPTIONS = {"--service": "service_name",
                  "--timeout": "timeout",
                  "--interval": "poll_interval"}


def load_config(opts: DocOptArgs) -> Config:
    """
    Build a `Config` from a script's `--config` file, the environment, and any overriding options.
    """
    config = Config.load(opts.get("--config"))
    config.update({key: opts.get(opt) for opt, key in CONFIG_OPTIONS.items()})
    if opts.get("--force"):
        config.resync_force = True
    return config


def entrypoint(fn: Optional[Callable[..., Any]] = None, *,
               name: Optional[str] = None) -> Callable[..., Any]:
    """
    Decorator to make an entrypoint out of a generic function.

    This uses `docopt` to parse arguments according to the method docstring, and will be formatted
    with `{script}` set to the script name.  At minimum, it should contain `Usage: {script}`.

    Functions may optionally accept arguments, but they must be annotated with a recognised type in
    order to be filled in:

    - `DocOptArgs` (a `dict` of input parameters parsed from the usage line)
    - `Config` (settings loaded by `load_config`)

    The script name defaults to `w32resync-<module>-<function>`, and can be set with `name`:

        @entrypoint(name="w32resync")
        def resync(opts: DocOptArgs, config: Config) -> int:
            \"""
            Usage: {script} [--service=NAME]
            \"""

    The function's return value is used as the exit code.
    """
    if fn is None:
        return lambda inner: entrypoint(inner, name=name)
    label = name or "w32resync-{}-{}".format(fn.__module__.rsplit(".", 1)[-1],
                                             fn.__qualname__).replace("_", "-")

    @wraps(fn)
    def wrap(opts: Optional[DocOptArgs] = None):
        extra: Dict[str, Any] = {}
        script = "{} [--debug]".format(label)
        if opts is None:
            doc = cleandoc(fn.__doc__.format(script=script))
            opts = docopt(doc)
        if opts.pop("--debug", False):
            logging.basicConfig(level=logging.DEBUG)
        else:
            logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
        for param in signature(fn).parameters.values():
            cls = param.annotation
            if cls is DocOptArgs:
                extra[param.name] = opts
            elif cls is Config:
                try:
                    extra[param.name] = load_config(opts)
                except ValueError as ex:
                    error("Invalid setting: {}".format(ex), exit=EXIT_UNUSABLE)
            else:
                raise RuntimeError("Bad parameter {!r} type {!r}".format(param.name, cls))
        return fn(**extra)
    wrap.__doc__ = wrap.__doc__.format(script=label)
    # Create a console script line for setup.
    target = "{}:{}".format(fn.__module__, fn.__qualname__)
    ENTRYPOINTS.append("{}={}".format(label, target))
    return wrap


def error(msg: Optional[str] = None, *, exit: Optional[int] = None, colour: Optional[str] = None):
    """
    Print an error message and/or exit.
    """
    if msg:
        colour = colour or ("1" if exit else "3")
        print("\033[9{}m{}\033[0m".format(colour, msg), file=sys.stderr)
    if exit is not None:
        sys.exit(exit)
