# src/maintdesk/export/sheet.py

"""
Spreadsheet export.

The "sheet" is an HTML table saved under a .xls name: spreadsheet apps open it
directly and keep the cell colors. Rendering is a pure function; delivery
("download") writes the bytes into the export directory.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from html import escape
from pathlib import Path
from typing import Final

from ..tasks.task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

# (background, text) per status: amber / blue / green bands.
STATUS_COLORS: Final[dict[TaskStatus, tuple[str, str]]] = {
    TaskStatus.PENDING: ("#FEF3C7", "#92400E"),
    TaskStatus.IN_PROGRESS: ("#DBEAFE", "#1E40AF"),
    TaskStatus.COMPLETED: ("#D1FAE5", "#065F46"),
}

_COLUMNS: Final[tuple[str, ...]] = ("ID", "Description", "Status", "Assigned To", "Date")

_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<style>
body {{ font-family: sans-serif; }}
table {{ border-collapse: collapse; width: 100%; }}
th, td {{ border: 1px solid #dddddd; text-align: left; padding: 8px; }}
th {{ background-color: #f2f2f2; font-weight: bold; }}
h2 {{ color: #333; }}
</style>
</head>
<body>
<h2>{title}</h2>
<table>
<thead>
<tr>{header}</tr>
</thead>
<tbody>
{rows}
</tbody>
</table>
</body>
</html>
"""


def _status_style(status: TaskStatus) -> str:
    bg, fg = STATUS_COLORS[status]
    return f"background-color: {bg}; color: {fg};"


def _row(task: Task) -> str:
    return (
        "<tr>"
        f"<td>{task.id}</td>"
        f"<td>{escape(task.description)}</td>"
        f'<td style="{_status_style(task.status)}">{escape(task.status.value)}</td>'
        f"<td>{escape(task.assigned_to)}</td>"
        f"<td>{escape(task.date)}</td>"
        "</tr>"
    )


def render_task_sheet(tasks: Sequence[Task], title: str) -> bytes:
    header = "".join(f"<th>{c}</th>" for c in _COLUMNS)
    rows = "\n".join(_row(t) for t in tasks)
    return _PAGE.format(title=escape(title), header=header, rows=rows).encode("utf-8")


class FileDownloader:
    """Delivers exported bytes by writing them into the export directory."""

    def __init__(self, export_dir: str | Path) -> None:
        self._dir = Path(export_dir)

    async def download(self, data: bytes, filename: str) -> Path:
        name = Path(filename).name
        if not name:
            raise ValueError("filename is required")
        path = self._dir / name
        await asyncio.to_thread(self._write, path, data)
        logger.info("Exported %d bytes to %s", len(data), path)
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


class HtmlSheetExporter:
    """SheetExporter: render_task_sheet + FileDownloader."""

    def __init__(self, downloader: FileDownloader) -> None:
        self._downloader = downloader

    async def export(self, tasks: Sequence[Task], *, title: str, filename: str) -> Path:
        data = render_task_sheet(tasks, title)
        return await self._downloader.download(data, filename)
