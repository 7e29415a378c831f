"""
CSV export of the waitlist.
"""
import asyncio
import csv
import io
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from starlette.responses import FileResponse

from models import WaitlistEntry

logger = logging.getLogger(__name__)

# (header, entry attribute)
CSV_COLUMNS = [
    ("Email", "email"),
    ("Timestamp", "timestamp"),
    ("ID", "id"),
    ("IP Address", "ip"),
    ("User Agent", "user_agent"),
]


class NothingToExportError(Exception):
    """Raised instead of producing an empty export"""


def build_csv(entries: List[WaitlistEntry], include_request_metadata: bool = True) -> str:
    if not entries:
        raise NothingToExportError("No emails to export")

    columns = CSV_COLUMNS if include_request_metadata else CSV_COLUMNS[:3]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for entry in entries:
        row = []
        for _, attr in columns:
            value = getattr(entry, attr)
            row.append("" if value is None else value)
        writer.writerow(row)
    return buffer.getvalue()


def write_export(entries: List[WaitlistEntry], directory: Path) -> Path:
    """Write a timestamped CSV into directory and return its path."""
    content = build_csv(entries)
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"waitlist_{int(time.time() * 1000)}.csv"
    path.write_text(content, encoding="utf-8")
    return path


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"waitlist_emails_{now.date().isoformat()}.csv"


async def remove_export_later(path: Path, delay: float) -> None:
    if delay > 0:
        await asyncio.sleep(delay)
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove export %s: %s", path, e)


class ExportFileResponse(FileResponse):
    """
    FileResponse for a temporary export. The background cleanup only runs
    after a complete send, so a failed send removes the file itself.
    """

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        except BaseException:
            try:
                Path(self.path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove export %s: %s", self.path, e)
            raise
