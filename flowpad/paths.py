"""
Where FlowPad looks for its config.json.

FLOWPAD_CONFIG names the file explicitly. Otherwise it sits in the project
root, or next to the executable for a frozen (PyInstaller) build.
"""

import os
import sys
from pathlib import Path

CONFIG_ENV = "FLOWPAD_CONFIG"
CONFIG_FILENAME = "config.json"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent / CONFIG_FILENAME
    return Path(__file__).resolve().parent.parent / CONFIG_FILENAME
