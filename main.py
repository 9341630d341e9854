#!/usr/bin/env python3
"""SysCode Group Membership Sync CLI.

Thin wrapper so the tool runs from a checkout without installing:

    $ python main.py devices.csv --dry-run

See syscode_sync.cli for options and environment variables.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from syscode_sync.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
