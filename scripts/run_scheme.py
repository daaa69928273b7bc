#!/usr/bin/env python3
"""
Run a sales incentive scheme from a source checkout.

Same options as the installed ``incentive-run`` command.

Usage:
    python3 scripts/run_scheme.py --scheme <scheme.json> --data <file> --as-of YYYY-MM-DD [options]
"""

from __future__ import annotations

import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from incentive_services.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
