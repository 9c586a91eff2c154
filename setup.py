import os.path

from setuptools import find_packages, setup

try:
    # Import all script providers so that ENTRYPOINTS gets populated.
    from resynclib.scripts import timesync  # noqa: F401
    from resynclib.scripts.utils import ENTRYPOINTS
except ImportError:
    # Avoid chicken-and-egg dependency requirements during initial installation.
    # This means you need to re-run setup in order to gain script entrypoints.
    ENTRYPOINTS = ["w32resync=resynclib.scripts.timesync:resync"]


README = os.path.join(os.path.abspath(os.path.dirname(__file__)), "README.rst")


setup(name="w32resync",
      version="1.0.0",
      description="Restart the Windows Time service and force an immediate clock resync.",
      long_description=open(README).read(),
      long_description_content_type="text/x-rst",
      platforms=["Windows"],
      python_requires=">=3.6",
      install_requires=["docopt", "pywin32; sys_platform == 'win32'"],
      packages=find_packages(exclude=["tests"]),
      entry_points={"console_scripts": ENTRYPOINTS})
