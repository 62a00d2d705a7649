#!/usr/bin/env python3
"""
Delete daily error log files (errors/YYYY-MM-DD.txt) older than the retention window.

The app also runs this on startup; use the script from cron for long-running
deployments. Run from project root:

    python scripts/cleanup_error_logs.py
    python scripts/cleanup_error_logs.py --days 14 --dir /var/log/agents/errors
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.core.config import ERROR_LOG_DAYS_TO_KEEP, ERROR_LOG_DIR
from app.core.error_log import cleanup_error_logs


def main() -> None:
    parser = argparse.ArgumentParser(description="Remove old daily error log files.")
    parser.add_argument(
        "--days",
        type=int,
        default=ERROR_LOG_DAYS_TO_KEEP,
        help=f"Keep files from the last N days (default {ERROR_LOG_DAYS_TO_KEEP}).",
    )
    parser.add_argument(
        "--dir",
        default=ERROR_LOG_DIR,
        help=f"Error log directory, relative to project root unless absolute (default {ERROR_LOG_DIR!r}).",
    )
    args = parser.parse_args()

    removed = cleanup_error_logs(args.dir, args.days)
    print(f"Done. Removed {removed} error log file(s).")


if __name__ == "__main__":
    main()
