"""
Error reporting port and daily error log files.

Services report failures through an ErrorReporter instead of writing files
themselves. The default reporter logs and appends to errors/YYYY-MM-DD.txt
(relative to project root); cleanup_error_logs() enforces the retention window.
"""

import asyncio
import logging
import re
import threading
import traceback
from datetime import date, datetime
from pathlib import Path
from typing import Any

from app.core.config import ERROR_LOG_DIR

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).resolve().parent.parent.parent
_LOG_FILE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})\.txt$")


def resolve_log_dir(log_dir: str | Path) -> Path:
    path = Path(log_dir)
    return path if path.is_absolute() else _ROOT / path


def _format_context(context: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in context.items() if v is not None)


class ErrorReporter:
    """Receives every failure the services surface. This base only logs."""

    def report(self, error: BaseException, source: str, **context: Any) -> None:
        kind = getattr(error, "kind", type(error).__name__)
        logger.error("[%s] %s: %s %s", source, kind, error, _format_context(context))

    async def areport(self, error: BaseException, source: str, **context: Any) -> None:
        """Report from a coroutine. Reporters that do blocking I/O override this."""
        self.report(error, source, **context)


class DailyFileErrorReporter(ErrorReporter):
    """Logs, then appends a block per error to <log_dir>/YYYY-MM-DD.txt."""

    def __init__(self, log_dir: str | Path = ERROR_LOG_DIR) -> None:
        self.log_dir = resolve_log_dir(log_dir)
        self._lock = threading.Lock()

    def report(self, error: BaseException, source: str, **context: Any) -> None:
        super().report(error, source, **context)
        self._append(error, source, context)

    async def areport(self, error: BaseException, source: str, **context: Any) -> None:
        """Same as report(), with the file append run in a worker thread."""
        super().report(error, source, **context)
        await asyncio.to_thread(self._append, error, source, context)

    def _append(self, error: BaseException, source: str, context: dict[str, Any]) -> None:
        now = datetime.now()
        path = self.log_dir / f"{now:%Y-%m-%d}.txt"
        details = "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip()
        header = f"[{now:%Y-%m-%d %H:%M:%S.%f}] {source}"
        ctx = _format_context(context)
        if ctx:
            header = f"{header} {ctx}"
        try:
            with self._lock:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                with path.open("a", encoding="utf-8") as fh:
                    fh.write(f"{header}\n{details}\n\n")
        except OSError as e:
            logger.warning("[error_log] failed to write %s: %s", path, e)


def cleanup_error_logs(log_dir: str | Path, days_to_keep: int, today: date | None = None) -> int:
    """
    Delete YYYY-MM-DD.txt files older than days_to_keep. Other files are left alone.
    Returns the number of files removed.
    """
    root = resolve_log_dir(log_dir)
    if not root.is_dir():
        logger.info("[error_log:cleanup] no directory %s; nothing to clean", root)
        return 0
    today = today or date.today()
    removed = 0
    for p in root.iterdir():
        match = _LOG_FILE_RE.match(p.name)
        if not p.is_file() or not match:
            continue
        try:
            file_date = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            continue
        if (today - file_date).days > days_to_keep:
            try:
                p.unlink()
                removed += 1
                logger.info("[error_log:cleanup] deleted %s", p.name)
            except OSError as e:
                logger.warning("Failed to remove %s: %s", p, e)
    return removed


_reporter: ErrorReporter | None = None


def get_error_reporter() -> ErrorReporter:
    """Process-wide reporter writing to ERROR_LOG_DIR."""
    global _reporter
    if _reporter is None:
        _reporter = DailyFileErrorReporter(ERROR_LOG_DIR)
    return _reporter
