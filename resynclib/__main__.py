import sys

from resynclib.scripts.timesync import resync


if __name__ == "__main__":
    sys.exit(resync())
