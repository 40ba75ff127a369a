#!/usr/bin/env python3
"""
Devlog Settings Parser
Prints the effective settings from .claude/devlog.local.md, DEVLOG_*
environment variables and built-in defaults.
Usage: ./parse_settings.py [field-name]
Without field-name: outputs every setting as key: value
With field-name: outputs that field's value
"""

import sys
from pathlib import Path

# Add script directory to sys.path for devlog_common import
SCRIPT_DIR = Path(__file__).parent.resolve()
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

import devlog_common  # noqa: E402 - Must import after sys.path modification


def debug_log(message: str, level: str = "INFO") -> None:
    devlog_common.write_debug_log("parse_settings", message, level)


def main(argv=None) -> int:
    """
    Main entry point

    Returns:
        Exit code (0 for success, 1 for an unknown field)
    """
    argv = sys.argv[1:] if argv is None else argv
    field_name = argv[0] if argv else None
    debug_log(f"Requested field: {field_name if field_name else 'ALL'}")

    config_file = devlog_common.find_settings_file()
    if config_file is None:
        debug_log("Settings file not found, using defaults")

    if field_name:
        if field_name not in devlog_common.DEFAULTS:
            devlog_common.devlog_error(f"Unknown setting: {field_name}")
            return 1
        print(devlog_common.get_setting(field_name))
        return 0

    for key in devlog_common.DEFAULTS:
        print(f"{key}: {devlog_common.get_setting(key)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
