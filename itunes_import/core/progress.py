"""
Progress display for itunes-import using the Rich library.

The importer reports progress through two plain callbacks, status(message)
and warn(message). ImportProgressBar provides both, so the CLI can hand
its bound methods straight to run_import() while the importer itself
stays free of any display code.

Usage:
    from itunes_import.core.progress import ImportProgressBar

    with ImportProgressBar() as progress:
        result = run_import(paths, progress.status, progress.warn, prompt)

    print(progress.warnings)
"""

import re
from typing import Optional

from rich import get_console
from rich.console import JustifyMethod, OverflowMethod
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
)
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(165,66,129)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(165,66,129)",
    "progress.percentage": "white",
})

# "Parsing tracks... (12/3400)"
_COUNTER_PATTERN = re.compile(r"\((\d+)/(\d+)\)")


class SizedTextColumn(ProgressColumn):
    """
    Text column truncated with an ellipsis past a fixed width.
    """

    def __init__(
        self,
        text_format: str,
        style: StyleType = "none",
        justify: JustifyMethod = "left",
        markup: bool = True,
        overflow: Optional[OverflowMethod] = None,
        width: int = 20,
    ) -> None:
        self.text_format = text_format
        self.justify: JustifyMethod = justify
        self.style = style
        self.markup = markup
        self.overflow: Optional[OverflowMethod] = overflow
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        """Render the column."""
        _text = self.text_format.format(task=task)
        if self.markup:
            text = Text.from_markup(_text, style=self.style, justify=self.justify)
        else:
            text = Text(_text, style=self.style, justify=self.justify)

        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


class ImportProgressBar:
    """
    Progress bar for an import run.

    Displays:
    - The latest status message
    - Warning counter (⚠) once the first warning arrives
    - Progress bar, advanced by "(i/total)" counters in status messages
    - Percentage

    Example:
        Importing   Parsing tracks... (120/3400)  ⚠ 4   ━━━━━━━━━━━━━━━━   4%

    Attributes:
        warnings: Every warning received, in order.
        completed: Last "i" seen in a status counter.
        total: Last "total" seen in a status counter, None until then.
    """

    def __init__(self, description: str = "Importing", status_width: int = 45):
        """
        Initialize the progress bar.

        Args:
            description: Description to show on the left.
            status_width: Width of the status column.
        """
        self.description = description
        self.message = ""
        self.warnings: list[str] = []
        self.completed = 0
        self.total: int | None = None

        self.console = get_console()
        self.console.push_theme(PROGRESS_THEME)

        self.progress = Progress(
            SizedTextColumn(
                "[white]{task.description}",
                overflow="ellipsis",
                width=12,
            ),
            SizedTextColumn(
                "{task.fields[status]}",
                overflow="ellipsis",
                width=status_width,
                style="white",
            ),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: Optional[TaskID] = None
        self._started = False

    def __enter__(self) -> "ImportProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        """Start the progress bar (can be called manually)."""
        if not self._started:
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=self.total,
                status=self._get_status_text(),
            )
            self._started = True

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self.console.pop_theme()
            self._started = False

    def status(self, message: str) -> None:
        """
        Status sink: show a progress message.

        A trailing "(i/total)" counter moves the bar to i of total.

        Args:
            message: Status text from the importer.
        """
        self.message = message
        match = _COUNTER_PATTERN.search(message)
        if match:
            self.completed = int(match.group(1))
            self.total = int(match.group(2))
        self._update_progress()

    def warn(self, message: str) -> None:
        """
        Warning sink: count the warning and print it above the bar.

        Args:
            message: Warning text from the importer.
        """
        self.warnings.append(message)
        self.log(f"[yellow]⚠[/yellow] {escape(message)}")
        self._update_progress()

    def log(self, message: str) -> None:
        """Print a message above the progress bar."""
        self.progress.console.print(message, highlight=False)

    def _get_status_text(self) -> str:
        parts = [escape(self.message)]
        if self.warnings:
            parts.append(f"[yellow]⚠ {len(self.warnings)}[/yellow]")
        return "  ".join(parts)

    def _update_progress(self) -> None:
        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                total=self.total,
                status=self._get_status_text(),
            )
