"""
savesync -- keep one game save in step across machines.

Compares the local save against a fingerprint stored next to the
remote copy and moves the file whichever way it needs to go.
Backs up before every overwrite. Skips while the game is running.
"""

import os

__version__ = "0.1.0"
__author__ = "savesync contributors"

SAVESYNC_HOME = os.environ.get("SAVESYNC_HOME", "~/.savesync")
